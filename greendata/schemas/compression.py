from pydantic import Field
from typing import Optional
from greendata.schemas.stats import CamelModel

class CompressRequest(CamelModel):
    """Body of the compress-file function: ``{filePath, filename, originalSize, mimeType}``."""
    file_path: str = Field(..., min_length=1)
    filename: str
    original_size: int = Field(..., ge=0)
    mime_type: Optional[str] = None

class CompressResponse(CamelModel):
    success: bool = True
    original_size: int
    compressed_size: int
    savings_percent: str
    message: str

class UploadResponse(CompressResponse):
    file_path: str

class ErrorResponse(CamelModel):
    error: str
