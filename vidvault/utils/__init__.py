from .filename import remove_artifacts, sanitize_extension
from .hash import hash_stable

__all__ = ["hash_stable", "remove_artifacts", "sanitize_extension"]
