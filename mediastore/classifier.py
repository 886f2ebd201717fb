import os

ACCEPTED_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp"})


def extension_of(name: str) -> str:
    return os.path.splitext(name or "")[1].lower()


def is_accepted_extension(ext: str) -> bool:
    return bool(ext) and ext.lower() in ACCEPTED_EXTENSIONS
