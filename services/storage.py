import uuid
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Optional

from core.exceptions import StorageError
from utils.logger import get_logger

logger = get_logger(__name__)


class FileStorage(ABC):
    """
    Where uploaded files live. Paths handed out by ``put`` are relative and
    are what gets stored in the database.
    """

    @abstractmethod
    def put(self, content: bytes, directory: str, filename: Optional[str] = None) -> str:
        raise NotImplementedError

    @abstractmethod
    def delete(self, path: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def url(self, path: str) -> str:
        raise NotImplementedError


class LocalFileStorage(FileStorage):
    def __init__(self, root: str | Path, base_url: str = "/storage"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if not target.is_relative_to(self.root.resolve()):
            raise ValueError(f"Path escapes storage root: {path}")
        return target

    def put(self, content: bytes, directory: str, filename: Optional[str] = None) -> str:
        extension = PurePosixPath(filename).suffix.lower() if filename else ""
        relative = f"{directory.strip('/')}/{uuid.uuid4().hex}{extension}"
        target = self._resolve(relative)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            logger.error(
                f"Failed to store file: {str(e)}",
                extra={"path": relative, "error_type": type(e).__name__},
                exc_info=True
            )
            raise StorageError("Failed to store uploaded file.") from e

        logger.debug("File stored", extra={"path": relative, "size": len(content)})
        return relative

    def delete(self, path: str) -> bool:
        try:
            self._resolve(path).unlink()
        except FileNotFoundError:
            logger.warning("File to delete does not exist", extra={"path": path})
            return False
        except (OSError, ValueError) as e:
            logger.error(
                f"Failed to delete file: {str(e)}",
                extra={"path": path, "error_type": type(e).__name__}
            )
            return False

        logger.debug("File deleted", extra={"path": path})
        return True

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path}"
