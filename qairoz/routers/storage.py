# qairoz/routers/storage.py
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from qairoz.database.database import get_db
from qairoz.schemas.storage import BackupOut, ExportResponse, S3ConnectionResponse
from qairoz.crud import crud
from qairoz.utils.storage import S3Storage, StorageError, StorageNotConfiguredError, get_storage
from qairoz.utils.timeutils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Storage"])


def _raise_storage_error(e: StorageError):
    if isinstance(e, StorageNotConfiguredError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))


# ---------------- CONNECTION TEST ----------------
@router.get("/test-s3", response_model=S3ConnectionResponse)
def check_s3(storage: S3Storage = Depends(get_storage)):
    try:
        info = storage.check_connection()
    except StorageError as e:
        _raise_storage_error(e)
    return {
        "success": True,
        "message": "S3 connection test successful",
        "data": {**info, "timestamp": utcnow()},
    }


# ---------------- EXPORT ----------------
@router.post("/export-to-s3", response_model=ExportResponse)
def export_to_s3(db: Session = Depends(get_db), storage: S3Storage = Depends(get_storage)):
    """Upload today's JSON snapshot and students CSV to the backup prefix."""
    snapshot = crud.build_snapshot(db)
    try:
        files = storage.export_snapshot(snapshot)
    except StorageError as e:
        logger.exception("Error exporting to S3: %s", e)
        _raise_storage_error(e)
    return {"data": {"files": files, "timestamp": utcnow()}}


# ---------------- BACKUPS ----------------
@router.get("/backups", response_model=List[BackupOut])
def list_backups(storage: S3Storage = Depends(get_storage)):
    try:
        return storage.list_backups()
    except StorageError as e:
        _raise_storage_error(e)
