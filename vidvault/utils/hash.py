import hashlib


def hash_stable(data: str, length: int = 16) -> str:
    """Short, process-independent SHA256 digest for cache keys"""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:length]
