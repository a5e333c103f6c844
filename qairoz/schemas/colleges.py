from typing import Optional

from pydantic import ConfigDict

from qairoz.schemas.common import CamelModel, IsoDatetime


# ---------------- COLLEGE INFO (upload payload) ----------------
class CollegeInfo(CamelModel):
    model_config = ConfigDict(extra="allow")

    email: Optional[str] = ""


# ---------------- COLLEGE OUTPUT ----------------
class CollegeOut(CamelModel):
    name: str
    email: str = ""
    student_count: int
    last_updated: IsoDatetime
    registered_at: IsoDatetime
