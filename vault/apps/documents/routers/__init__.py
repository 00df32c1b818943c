"""API routers for the document directory."""

from vault.apps.documents.routers.documents import router as documents_router
from vault.apps.documents.routers.files import router as files_router

__all__ = ["documents_router", "files_router"]
