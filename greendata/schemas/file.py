from pydantic import BaseModel, ConfigDict, computed_field
from typing import List, Optional
from datetime import datetime
from greendata.schemas.stats import StorageStats
from greendata.services.stats_service import row_savings_percent

class FileBase(BaseModel):
    filename: str
    mime_type: Optional[str] = None

class FileOut(FileBase):
    id: int
    user_id: int
    original_size: int
    compressed_size: int
    storage_path: str
    compression_ratio: float
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @computed_field(alias="savingsPercent")
    @property
    def savings_percent(self) -> str:
        return row_savings_percent(self.original_size, self.compressed_size)

class FileDeleted(BaseModel):
    status: str = "success"
    message: str

class FilesSnapshot(BaseModel):
    """What a mounted files view receives over the realtime socket."""
    type: str = "snapshot"
    files: List[FileOut]
    stats: StorageStats
