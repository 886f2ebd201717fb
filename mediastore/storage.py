import os
import stat
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union
from uuid import uuid4

from mediastore.classifier import extension_of, is_accepted_extension
from mediastore.errors import NotFoundError, PersistenceError, ValidationError
from mediastore.paths import PathResolver
from mediastore.processing import ImageNormalizer

LOG = logging.getLogger("mediastore.storage")


@dataclass(frozen=True)
class StoredFile:
    project_name: str
    folder: Optional[str]
    file_name: str
    original_name: str
    extension: str
    size_bytes: int
    path: Path
    url_path: str
    url: str
    uploaded_at: datetime


def new_identity(extension: str) -> str:
    return f"{uuid4().hex}{extension}"


class StorageEngine:
    """Project-scoped image store rooted at a single upload directory.

    The filesystem is the only state: every call re-reads it, nothing is
    cached between calls.
    """

    def __init__(
        self,
        root: Union[str, Path],
        normalizer: Optional[ImageNormalizer] = None,
        public_url_prefix: str = "",
    ):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.paths = PathResolver(self.root)
        self.normalizer = normalizer or ImageNormalizer()
        self.public_url_prefix = public_url_prefix.rstrip("/")

    # ---------- Upload ----------
    def upload(
        self,
        data: Optional[bytes],
        original_name: str,
        project_name: str,
        folder: Optional[str] = None,
    ) -> StoredFile:
        if not data:
            raise ValidationError("No file provided")
        if not project_name:
            raise ValidationError("Project name is required")
        original_ext = extension_of(original_name)
        if not is_accepted_extension(original_ext):
            raise ValidationError("Only image files are allowed")

        directory = self.paths.directory(project_name, folder)

        result = self.normalizer.normalize(data, original_ext)
        if result.ok:
            body, ext = result.data, result.extension
            if original_ext != ".gif":
                saved = (len(data) - len(body)) / len(data) * 100
                LOG.info("Image optimized: %s (%d -> %d bytes, %.1f%% saved)",
                         original_name, len(data), len(body), saved)
        else:
            LOG.warning("Image optimization failed for %s, using original: %s",
                        original_name, result.error)
            body, ext = data, original_ext

        file_name = new_identity(ext)
        path = self.paths.resolve(project_name, file_name, folder)
        try:
            directory.mkdir(parents=True, exist_ok=True)
            self._write_once(path, body)
        except OSError as e:
            LOG.error("Upload write failed project=%s path=%s: %s", project_name, path, e)
            raise PersistenceError("Failed to upload file", e) from e

        url_path = self.paths.to_external_path(project_name, file_name, folder)
        LOG.info("Stored project=%s file=%s size=%d", project_name, url_path, len(body))
        return StoredFile(
            project_name=project_name,
            folder=folder or None,
            file_name=file_name,
            original_name=original_name,
            extension=ext,
            size_bytes=len(body),
            path=path,
            url_path=url_path,
            url=f"{self.public_url_prefix}/{url_path}",
            uploaded_at=datetime.now(timezone.utc),
        )

    @staticmethod
    def _write_once(path: Path, body: bytes) -> None:
        # "x" refuses to replace an existing file
        with open(path, "xb") as f:
            try:
                f.write(body)
            except OSError:
                f.close()
                path.unlink(missing_ok=True)
                raise

    # ---------- Locate ----------
    def locate(self, project_name: str, file_name: str, folder: Optional[str] = None) -> Path:
        path = self.paths.resolve(project_name, file_name, folder)
        try:
            st = os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            raise NotFoundError("File not found")
        except OSError as e:
            LOG.error("Locate failed path=%s: %s", path, e)
            raise PersistenceError("Failed to read file", e) from e
        if not stat.S_ISREG(st.st_mode):
            raise NotFoundError("File not found")
        return path

    # ---------- Delete ----------
    def delete(self, project_name: str, file_name: str, folder: Optional[str] = None) -> None:
        path = self.locate(project_name, file_name, folder)
        try:
            os.unlink(path)
        except FileNotFoundError:
            raise NotFoundError("File not found")
        except OSError as e:
            LOG.error("Delete failed path=%s: %s", path, e)
            raise PersistenceError("Failed to delete file", e) from e
        LOG.info("Deleted project=%s file=%s",
                 project_name, self.paths.to_external_path(project_name, file_name, folder))

    # ---------- List ----------
    def list_files(self, project_name: str, folder: Optional[str] = None) -> List[str]:
        directory = self.paths.directory(project_name, folder)
        try:
            with os.scandir(directory) as it:
                names = [e.name for e in it if e.is_file(follow_symlinks=False)]
        except (FileNotFoundError, NotADirectoryError):
            return []
        except OSError as e:
            LOG.error("Listing failed dir=%s: %s", directory, e)
            raise PersistenceError("Failed to read project files", e) from e
        return sorted(names)
