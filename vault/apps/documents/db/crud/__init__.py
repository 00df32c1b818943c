"""CRUD operations for documents."""

from vault.apps.documents.db.crud.document import DocumentDB

document_db = DocumentDB()

__all__ = ["DocumentDB", "document_db"]
