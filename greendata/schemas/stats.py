from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import List, Literal

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class StorageStats(CamelModel):
    total_files: int = 0
    total_original_size: int = 0
    total_compressed_size: int = 0
    total_savings: int = 0
    savings_percent: str = "0"
    storage_used: str = "0 B"
    space_saved: str = "0 B"

class UserUsage(CamelModel):
    id: int
    email: str
    full_name: str
    file_count: int = 0
    total_size: int = 0
    storage_used: str = "0 B"

class AdminOverview(CamelModel):
    total_users: int = 0
    total_files: int = 0
    total_original_size: int = 0
    total_compressed_size: int = 0
    savings_percent: str = "0"
    storage_used: str = "0 B"
    space_saved: str = "0 B"
    users: List[UserUsage] = []

class AdminSnapshot(CamelModel):
    type: Literal["snapshot"] = "snapshot"
    overview: AdminOverview
