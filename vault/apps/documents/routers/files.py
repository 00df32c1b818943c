"""
File serving.

Secure documents are only served with a download token from step-up
verification, passed as ``?token=``.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from vault.apps.documents.services.document import DocumentService
from vault.core.dependencies import get_async_session

router = APIRouter(prefix="/files")


@router.get(
    "/{document_id}",
    summary="Download a document",
    response_class=Response,
    responses={
        200: {"description": "The stored file, or a generated text summary"},
        403: {
            "description": "Unknown document, or a secure document without a valid token",
            "content": {
                "application/json": {
                    "example": {"success": False, "message": "Access denied."}
                }
            },
        },
    },
    description="""
## Download a Document

Non-secure documents are served to anyone holding the id. Secure documents
need the `token` returned by `POST /auth/step-up/verify`; it is tied to this
document and expires after a few minutes.
""",
)
async def download_file(
    document_id: UUID,
    session: Annotated[AsyncSession, Depends(get_async_session)],
    token: Annotated[str | None, Query(max_length=4096)] = None,
) -> Response:
    payload = await DocumentService.resolve_download(
        session=session, document_id=document_id, token=token
    )
    if payload.path is not None:
        return FileResponse(
            payload.path, media_type=payload.media_type, filename=payload.filename
        )
    return Response(
        content=payload.content,
        media_type=payload.media_type,
        headers={"Content-Disposition": f'attachment; filename="{payload.filename}"'},
    )
