# qairoz/routers/students.py
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from qairoz.database.database import get_db
from qairoz.schemas.students import StudentUploadRequest, StudentUploadResponse
from qairoz.crud import crud
from qairoz.utils import email as email_utils

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/students", tags=["Students"])


# ---------------- LIST STUDENTS ----------------
@router.get("", response_model=List[Dict[str, Any]])
def get_students(
    college_name: Optional[str] = Query(None, alias="collegeName", description="Only this college's roster"),
    db: Session = Depends(get_db),
):
    return [crud.student_to_dict(s) for s in crud.get_students(db, college_name=college_name)]


# ---------------- UPLOAD ROSTER ----------------
@router.post("", response_model=StudentUploadResponse)
def upload_students(
    payload: StudentUploadRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Register the college on first upload and replace its student roster.
    A newly registered college with an email gets a welcome message.
    """
    try:
        college, created = crud.upsert_college_roster(db, payload)
    except Exception as e:
        logger.exception("Error uploading students: %s", e)
        raise HTTPException(status_code=500, detail="Internal server error")

    if created and college.email:
        background_tasks.add_task(email_utils.send_welcome_email, college.email, college.name)

    return StudentUploadResponse(count=len(payload.students), college_name=college.name)
