"""
Local file storage for uploaded documents.

Files are written under ``UPLOAD_DIR`` as ``<account_id>/<document_id><ext>``
and streamed to disk in chunks with aiofiles.
"""

from pathlib import Path
from uuid import UUID

import aiofiles
import aiofiles.os
from fastapi import UploadFile

from vault.core.config import settings, storage_logger
from vault.core.exceptions.types import BadRequestException

CHUNK_SIZE = 1024 * 1024


class FileStorage:
    _root: Path = Path(settings.UPLOAD_DIR)
    _max_bytes: int = settings.MAX_UPLOAD_BYTES

    @classmethod
    async def init(
        cls, upload_dir: str | None = None, max_bytes: int | None = None
    ) -> None:
        """Point storage at ``upload_dir`` and make sure it exists."""
        if upload_dir is not None:
            cls._root = Path(upload_dir)
        if max_bytes is not None:
            cls._max_bytes = max_bytes
        await aiofiles.os.makedirs(cls._root, exist_ok=True)
        storage_logger.info(f"File storage ready at {cls._root}")

    @classmethod
    def resolve(cls, relative_path: str) -> Path:
        """
        Turn a stored relative path into an absolute one inside the root.

        Raises:
            ValueError: If the path escapes the storage root.
        """
        root = cls._root.resolve()
        path = (root / relative_path).resolve()
        if root != path and root not in path.parents:
            raise ValueError(f"Path escapes storage root: {relative_path}")
        return path

    @classmethod
    async def save(
        cls, account_id: UUID, document_id: UUID, upload: UploadFile
    ) -> tuple[str, int]:
        """
        Stream an upload to disk.

        Args:
            account_id: Owner; files are grouped per account.
            document_id: Document the file belongs to; names the file.
            upload: The incoming multipart file.

        Returns:
            tuple[str, int]: Path relative to the storage root, and bytes written.

        Raises:
            BadRequestException: If the file is larger than ``MAX_UPLOAD_BYTES``.
                The partial file is removed.
        """
        suffix = Path(upload.filename or "").suffix.lower()
        relative = f"{account_id}/{document_id}{suffix}"
        target = cls.resolve(relative)
        await aiofiles.os.makedirs(target.parent, exist_ok=True)

        written = 0
        too_large = False
        async with aiofiles.open(target, "wb") as out:
            while chunk := await upload.read(CHUNK_SIZE):
                written += len(chunk)
                if written > cls._max_bytes:
                    too_large = True
                    break
                await out.write(chunk)

        if too_large:
            await cls.delete(relative)
            storage_logger.warning(
                f"Upload rejected for account {account_id}: over {cls._max_bytes} bytes"
            )
            raise BadRequestException(
                f"File too large. Maximum size is {cls._max_bytes // (1024 * 1024)} MB."
            )

        storage_logger.info(f"Stored {written} bytes at {relative}")
        return relative, written

    @classmethod
    async def exists(cls, relative_path: str | None) -> bool:
        if not relative_path:
            return False
        try:
            return await aiofiles.os.path.isfile(cls.resolve(relative_path))
        except ValueError:
            return False

    @classmethod
    async def delete(cls, relative_path: str | None) -> bool:
        """Remove a stored file. Missing files are not an error."""
        if not relative_path:
            return False
        try:
            await aiofiles.os.remove(cls.resolve(relative_path))
        except FileNotFoundError:
            return False
        except ValueError as e:
            storage_logger.warning(f"Refusing to delete {relative_path}: {e}")
            return False
        storage_logger.info(f"Deleted stored file {relative_path}")
        return True


__all__ = ["FileStorage"]
