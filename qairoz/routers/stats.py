from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qairoz.database.database import get_db
from qairoz.schemas.stats import StatsOut
from qairoz.crud import crud

router = APIRouter(prefix="/api/stats", tags=["Stats"])


@router.get("", response_model=StatsOut)
def get_stats(db: Session = Depends(get_db)):
    """Totals plus per-sport, per-course, per-year and per-college counts."""
    return StatsOut(**crud.get_stats(db))
