"""
Document directory router.

- List documents with filters
- Upload a document (multipart)
- Delete a document
- Storage usage
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from vault.apps.documents.schemas.document import (
    DocumentListResponse,
    DocumentResponse,
    DocumentUploadResponse,
    StorageInfoResponse,
)
from vault.apps.documents.services.document import DocumentService, parse_tags
from vault.core.dependencies import CurrentUser, get_async_session
from vault.core.enums import DocumentType
from vault.core.schemas.auth import MessageResponse

router = APIRouter(prefix="/documents")


@router.get(
    "",
    response_model=DocumentListResponse,
    summary="List documents",
    description="""
## List Documents

Return the caller's documents, newest first.

### Query Parameters

| Parameter | Type | Default | Description |
|-----------|------|---------|-------------|
| `type` | string | `all` | `certificate`, `fee-receipt`, `transcript`, `id-card`, `other` or `all` |
| `semester` | string | `all` | Exact semester |
| `year` | string | `all` | Exact year |
| `search` | string | - | Matches name, description or a tag, ignoring case |
| `limit` | int | 50 | Page size (1-200) |
| `offset` | int | 0 | Rows to skip |
""",
)
async def list_documents(
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    type: Annotated[str | None, Query()] = None,
    semester: Annotated[str | None, Query()] = None,
    year: Annotated[str | None, Query()] = None,
    search: Annotated[str | None, Query(max_length=255)] = None,
    limit: Annotated[int, Query(ge=1, le=200)] = 50,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> DocumentListResponse:
    documents = await DocumentService.list_documents(
        session=session,
        account=user,
        type=type,
        semester=semester,
        year=year,
        search=search,
        limit=limit,
        offset=offset,
    )
    return DocumentListResponse(
        message=f"Found {len(documents)} documents",
        documents=[DocumentResponse.model_validate(doc) for doc in documents],
    )


@router.post(
    "",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a document",
    description="""
## Upload a Document

Multipart form. The file is optional; without one the document is stored
as metadata only and downloads return a generated text summary.

| Field | Type | Required | Description |
|-------|------|----------|-------------|
| `name` | string | ✅ | At least 3 characters, unique among your documents |
| `type` | string | ✅ | Document category |
| `semester` | string | ✅ | Semester label |
| `year` | string | ✅ | Year label |
| `is_secure` | bool | ❌ | Require step-up before download |
| `description` | string | ❌ | Free text |
| `tags` | string | ❌ | Comma-separated tags |
| `file` | file | ❌ | The document itself |

### Error Responses

| Status | Reason |
|--------|--------|
| `400 Bad Request` | Name too short, file too large, or storage quota exceeded |
| `409 Conflict` | A document with this name already exists |
""",
)
async def upload_document(
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    name: Annotated[str, Form(max_length=255)],
    type: Annotated[DocumentType, Form()],
    semester: Annotated[str, Form(min_length=1, max_length=32)],
    year: Annotated[str, Form(min_length=1, max_length=16)],
    is_secure: Annotated[bool, Form()] = False,
    description: Annotated[str | None, Form(max_length=2000)] = None,
    tags: Annotated[str | None, Form(max_length=1000)] = None,
    file: Annotated[UploadFile | None, File()] = None,
) -> DocumentUploadResponse:
    document = await DocumentService.upload(
        session=session,
        account=user,
        name=name,
        type=type,
        semester=semester,
        year=year,
        is_secure=is_secure,
        description=description,
        tags=parse_tags(tags),
        file=file,
    )
    message = f'Document "{document.name}" uploaded successfully'
    if document.is_secure:
        message += ". Security protection enabled."
    return DocumentUploadResponse(
        message=message,
        document=DocumentResponse.model_validate(document),
    )


@router.get(
    "/storage",
    response_model=StorageInfoResponse,
    summary="Storage usage",
)
async def storage_info(
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> StorageInfoResponse:
    """Bytes used against the quota, as a whole percentage capped at 100."""
    info = await DocumentService.storage_info(session=session, account=user)
    return StorageInfoResponse(
        used=info.used,
        total=info.total,
        percentage=info.percentage,
        documents_count=info.documents_count,
    )


@router.delete(
    "/{document_id}",
    response_model=MessageResponse,
    summary="Delete a document",
)
async def delete_document(
    document_id: UUID,
    user: CurrentUser,
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> MessageResponse:
    """Delete one of your documents; anyone else's is a 404."""
    await DocumentService.delete_document(
        session=session, account=user, document_id=document_id
    )
    return MessageResponse(message="Document deleted successfully")
