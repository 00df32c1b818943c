"""
Download authorization tokens.

A download token is a signed, expiring JWT scoped to exactly one document.
It is minted when step-up verification succeeds and checked by the file
endpoint; nothing about it is persisted.
"""

from datetime import timedelta
from uuid import UUID

from vault.core.config import settings, step_up_logger
from vault.core.utils import create_jwt_token, decode_jwt_token

DOWNLOAD_TOKEN_TYPE = "download"


class DownloadTokenService:
    @classmethod
    def expires_in(cls) -> int:
        """Token lifetime in seconds."""
        return settings.DOWNLOAD_TOKEN_EXPIRY_MINUTES * 60

    @classmethod
    def mint(cls, document_id: UUID, expires_delta: timedelta | None = None) -> str:
        """
        Create a token authorizing one download of ``document_id``.

        Args:
            document_id: The only document the token unlocks.
            expires_delta: Lifetime override. Defaults to
                ``DOWNLOAD_TOKEN_EXPIRY_MINUTES``.

        Returns:
            str: The signed token.
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.DOWNLOAD_TOKEN_EXPIRY_MINUTES)
        return create_jwt_token(
            {"sub": str(document_id), "type": DOWNLOAD_TOKEN_TYPE},
            expires_delta=expires_delta,
            secret=settings.DOWNLOAD_TOKEN_SECRET,
        )

    @classmethod
    def verify(cls, token: str | None, document_id: UUID | str) -> bool:
        """
        Check that ``token`` is a live download token for ``document_id``.

        Fails closed: bad signature, expiry, wrong token type, a different
        document or an undecodable string all return False. Never raises.
        """
        payload = decode_jwt_token(token, secret=settings.DOWNLOAD_TOKEN_SECRET)
        if payload is None:
            return False

        if payload.get("type") != DOWNLOAD_TOKEN_TYPE:
            step_up_logger.warning("Download token rejected: wrong token type")
            return False

        if payload.get("sub") != str(document_id):
            step_up_logger.warning(
                f"Download token rejected: scoped to another document, requested {document_id}"
            )
            return False

        return True

    @classmethod
    def download_url(cls, document_id: UUID, token: str) -> str:
        return f"{settings.API_DOMAIN}/files/{document_id}?token={token}"


__all__ = ["DownloadTokenService", "DOWNLOAD_TOKEN_TYPE"]
