from vault.apps.documents.db.models.document import Document

__all__ = ["Document"]
