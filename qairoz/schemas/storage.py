from typing import List, Optional

from pydantic import Field

from qairoz.schemas.common import CamelModel, IsoDatetime


class S3ConnectionData(CamelModel):
    buckets: List[str]
    region: Optional[str] = None
    timestamp: IsoDatetime


class S3ConnectionResponse(CamelModel):
    success: bool = True
    message: str
    data: S3ConnectionData


class ExportedFile(CamelModel):
    name: str
    size: int
    url: str


class ExportData(CamelModel):
    files: List[ExportedFile] = Field(default_factory=list)
    timestamp: IsoDatetime


class ExportResponse(CamelModel):
    success: bool = True
    message: str = "Data exported to S3 successfully"
    data: ExportData


class BackupOut(CamelModel):
    name: str
    size: int
    last_modified: IsoDatetime
    url: str
