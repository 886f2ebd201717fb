import re
from pathlib import Path
from typing import List, Optional, Union

from mediastore.errors import ValidationError

_SEPARATORS = re.compile(r"[\\/]+")


def _check_segment(segment: str, what: str) -> str:
    if segment in ("", ".", ".."):
        raise ValidationError(f"Invalid {what}: {segment!r}")
    if "\x00" in segment or ":" in segment:
        raise ValidationError(f"Invalid {what}: {segment!r}")
    return segment


def folder_segments(folder: Optional[str]) -> List[str]:
    """Split a folder into path segments.

    Both ``/`` and ``\\`` act as separators and empty segments are dropped,
    so ``"a//b/"`` and ``"a\\b"`` both give ``["a", "b"]``. Absolute folders
    and ``.``/``..`` segments are rejected.
    """
    if not folder:
        return []
    if folder[0] in "/\\":
        raise ValidationError(f"Invalid folder: {folder!r}")
    parts = [p for p in _SEPARATORS.split(folder) if p]
    return [_check_segment(p, "folder") for p in parts]


def _single(value: str, what: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{what.capitalize()} is required")
    if _SEPARATORS.search(value):
        raise ValidationError(f"Invalid {what}: {value!r}")
    return _check_segment(value, what)


class PathResolver:
    """Maps (project, folder, file name) onto the upload root.

    Every name is checked before it is joined and the joined path must stay
    inside the root, so caller-supplied values can never address a file
    outside of it.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def directory(self, project_name: str, folder: Optional[str] = None) -> Path:
        path = self.root.joinpath(_single(project_name, "project name"), *folder_segments(folder))
        return self._confine(path)

    def resolve(self, project_name: str, file_name: str, folder: Optional[str] = None) -> Path:
        path = self.directory(project_name, folder) / _single(file_name, "file name")
        return self._confine(path)

    def to_external_path(self, project_name: str, file_name: str, folder: Optional[str] = None) -> str:
        parts = [project_name, *folder_segments(folder), file_name]
        return "/".join(parts).replace("\\", "/")

    def _confine(self, path: Path) -> Path:
        try:
            path.resolve().relative_to(self.root)
        except ValueError:
            raise ValidationError("Path escapes the upload root")
        return path
