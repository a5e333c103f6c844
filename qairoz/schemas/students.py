from typing import Any, Dict, List, Optional

from pydantic import Field

from qairoz.schemas.common import CamelModel
from qairoz.schemas.colleges import CollegeInfo


# ---------------- ROSTER UPLOAD ----------------
class StudentUploadRequest(CamelModel):
    college_name: str = Field(..., min_length=1)
    students: List[Dict[str, Any]]
    college_info: Optional[CollegeInfo] = None

    @property
    def college_email(self) -> str:
        if self.college_info and self.college_info.email:
            return self.college_info.email
        return ""


class StudentUploadResponse(CamelModel):
    success: bool = True
    message: str = "Students uploaded successfully"
    count: int
    college_name: str
