from vault.apps.documents.services.storage import FileStorage
from vault.apps.documents.services.document import (
    DocumentService,
    DownloadPayload,
    StorageInfo,
)

__all__ = ["FileStorage", "DocumentService", "DownloadPayload", "StorageInfo"]
