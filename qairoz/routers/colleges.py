from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qairoz.database.database import get_db
from qairoz.schemas.colleges import CollegeOut
from qairoz.crud import crud

router = APIRouter(prefix="/api/colleges", tags=["Colleges"])


# ---------------- LIST COLLEGES ----------------
@router.get("", response_model=List[CollegeOut])
def get_colleges(db: Session = Depends(get_db)):
    return crud.get_colleges(db)
