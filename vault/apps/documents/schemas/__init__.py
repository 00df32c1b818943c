from vault.apps.documents.schemas.document import (
    DocumentMetadata,
    DocumentResponse,
    DocumentUploadResponse,
    DocumentListResponse,
    StorageInfoResponse,
)

__all__ = [
    "DocumentMetadata",
    "DocumentResponse",
    "DocumentUploadResponse",
    "DocumentListResponse",
    "StorageInfoResponse",
]
