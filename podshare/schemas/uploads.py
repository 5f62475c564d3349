from datetime import datetime
from typing import List, Optional
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel
from .common import CamelModel

class UploadInitIn(CamelModel):
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    folder: Optional[str] = 'podcasts'

class UploadInitOut(CamelModel):
    upload_id: str
    presigned_urls: List[str] = []
    message: str

class ChunkOut(CamelModel):
    success: bool
    chunk_index: int
    message: str

class UploadPart(CamelModel):
    # unknown keys are kept so the caller's report is stored as sent
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='allow')

    chunk_index: int
    etag: Optional[str] = None
    size: Optional[int] = None

class UploadCompleteIn(CamelModel):
    upload_id: Optional[str] = None
    parts: Optional[List[UploadPart]] = None

class UploadCompleteOut(CamelModel):
    status: str
    file_url: str
    message: str

class UploadStatusOut(CamelModel):
    id: str
    user_id: int
    file_name: str
    file_type: str
    file_size: int
    folder: str
    parts: List[dict] = []
    status: str
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    parts_count: int = 0

    @classmethod
    def from_upload(cls, upload):
        out = cls.model_validate(upload)
        out.parts_count = len(upload.parts or [])
        return out
