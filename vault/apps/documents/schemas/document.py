"""Document directory schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from vault.core.enums import DocumentType


class DocumentMetadata(BaseModel):
    mime_type: str | None = None
    original_name: str | None = None
    tags: list[str] = Field(default_factory=list)
    description: str | None = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "3f2b8c1e-4a5d-4e6f-8a9b-0c1d2e3f4a5b",
                "name": "Semester 3 Transcript",
                "type": "transcript",
                "semester": "3",
                "year": "2024",
                "upload_date": "2024-11-02T09:30:00Z",
                "size": "1.5 KB",
                "size_bytes": 1536,
                "is_secure": True,
                "metadata": {
                    "mime_type": "application/pdf",
                    "original_name": "transcript.pdf",
                    "tags": ["official"],
                    "description": None,
                },
            }
        },
    )

    id: UUID
    name: str
    type: DocumentType
    semester: str
    year: str
    upload_date: datetime
    size: str
    size_bytes: int
    is_secure: bool
    metadata: DocumentMetadata = Field(
        default_factory=DocumentMetadata,
        validation_alias=AliasChoices("doc_metadata", "metadata"),
    )


class DocumentUploadResponse(BaseModel):
    success: bool = True
    message: str
    document: DocumentResponse


class DocumentListResponse(BaseModel):
    success: bool = True
    message: str
    documents: list[DocumentResponse]


class StorageInfoResponse(BaseModel):
    success: bool = True
    message: str = "Storage info retrieved successfully"
    used: int = Field(description="Bytes stored")
    total: int = Field(description="Quota in bytes")
    percentage: int = Field(description="Share of the quota used, 0-100")
    documents_count: int


__all__ = [
    "DocumentMetadata",
    "DocumentResponse",
    "DocumentUploadResponse",
    "DocumentListResponse",
    "StorageInfoResponse",
]
