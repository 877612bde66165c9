import os
import re
import unicodedata
from typing import Optional

DEFAULT_EXTENSION = "mp4"


def sanitize_extension(extension: str) -> str:
    """Reduce an extension to 1-5 lowercase alphanumerics, else the default"""
    ext = unicodedata.normalize("NFKC", extension or "").strip().lstrip(".").lower()
    if re.fullmatch(r"[a-z0-9]{1,5}", ext):
        return ext
    return DEFAULT_EXTENSION


def remove_artifacts(directory: str, stem: str, keep: Optional[str] = None) -> int:
    """Remove every file in directory named stem or stem.<anything>, except keep"""
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        return 0

    removed = 0
    for name in names:
        if name != stem and not name.startswith(stem + "."):
            continue
        path = os.path.join(directory, name)
        if keep is not None and os.path.abspath(path) == os.path.abspath(keep):
            continue
        try:
            os.remove(path)
            removed += 1
        except (FileNotFoundError, IsADirectoryError):
            pass
    return removed
