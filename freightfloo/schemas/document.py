from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from freightfloo.models.enums import DocumentCategory


class DocumentCreate(BaseModel):
    """Metadata for a file already uploaded to storage."""
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    file_name: str = Field(min_length=1)
    file_url: str = Field(min_length=1)
    file_size: Optional[int] = Field(default=None, ge=0)
    mime_type: Optional[str] = None
    category: DocumentCategory = DocumentCategory.OTHER
    is_public: bool = False
    shipment_id: Optional[int] = None
    trip_id: Optional[int] = None
    expires_at: Optional[datetime] = None


class DocumentResponse(BaseModel):
    id: int
    uploaded_by_id: int
    title: str
    description: Optional[str] = None
    file_name: str
    file_url: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    category: str
    is_public: bool
    shipment_id: Optional[int] = None
    trip_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True
