import logging
import os
import re
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Set

from vidvault.core.errors import DownloadFailure, PathTraversalAttempt
from vidvault.models.internal import StoredFile
from vidvault.utils.filename import remove_artifacts, sanitize_extension

logger = logging.getLogger(__name__)

STAGING_DIR = ".staging"
FILE_PREFIX = "video_"
STORED_NAME = re.compile(r"^video_[0-9a-f]{12}\.[a-z0-9]{1,5}$")


class FileStore:
    """
    Directory-backed store of downloaded files.

    The directory is the only source of truth: names are generated here,
    sizes and creation times are read from the filesystem on every call.
    In-flight downloads live under a hidden staging directory and are
    moved into the root only once complete.
    """

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        self.staging_root = os.path.join(self.root, STAGING_DIR)
        # Stems of reserved names whose download has not been committed or discarded
        self._in_flight: Set[str] = set()
        self._lock = threading.Lock()

    def _ensure_root(self) -> str:
        os.makedirs(self.root, exist_ok=True)
        return os.path.realpath(self.root)

    def reserve_name(self, extension: str) -> str:
        """Return a fresh video_<id>.<ext> name; 48 random bits per name."""
        ext = sanitize_extension(extension)
        return f"{FILE_PREFIX}{uuid.uuid4().hex[:12]}.{ext}"

    def resolve(self, file_name: str) -> str:
        """
        PathGuard: map a caller-supplied name to an absolute path inside the root.
        Any name carrying directory components or escaping the root (including
        through symlinks) raises PathTraversalAttempt.
        """
        if not file_name or file_name in (".", ".."):
            raise PathTraversalAttempt("empty or dot name")
        if "/" in file_name or "\\" in file_name or "\x00" in file_name or ".." in file_name:
            raise PathTraversalAttempt("name carries path components")
        if os.path.basename(file_name) != file_name:
            raise PathTraversalAttempt("name carries path components")

        root = self._ensure_root()
        candidate = os.path.realpath(os.path.join(root, file_name))
        if os.path.dirname(candidate) != root:
            raise PathTraversalAttempt("resolved outside storage root")
        return candidate

    def _stored_file(self, file_name: str, st: os.stat_result) -> StoredFile:
        return StoredFile(
            file_name=file_name,
            size_bytes=st.st_size,
            created_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    def list(self) -> List[StoredFile]:
        """All stored files, most recent first"""
        root = self._ensure_root()
        entries: List[StoredFile] = []
        with os.scandir(root) as it:
            for entry in it:
                if not STORED_NAME.match(entry.name):
                    continue
                try:
                    if not entry.is_file(follow_symlinks=False):
                        continue
                    st = entry.stat(follow_symlinks=False)
                except FileNotFoundError:
                    # Removed by a concurrent delete or sweep
                    continue
                entries.append(self._stored_file(entry.name, st))

        entries.sort(key=lambda f: f.created_at, reverse=True)
        return entries

    def delete(self, file_name: str) -> bool:
        """Idempotent: False when the file is already gone"""
        path = self.resolve(file_name)
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except IsADirectoryError:
            return False
        logger.info(f"Deleted {file_name}")
        return True

    def sweep(self, max_age_hours: float = 24) -> int:
        """Delete files older than max_age_hours, measured from the start of this sweep"""
        started = time.time()
        threshold = max_age_hours * 3600
        removed = 0

        for stored in self.list():
            age = started - stored.created_at.timestamp()
            if age > threshold and self.delete(stored.file_name):
                removed += 1

        self._purge_staging(started - threshold)
        if removed:
            logger.info(f"Swept {removed} file(s) older than {max_age_hours}h")
        return removed

    def stats(self) -> Dict[str, int]:
        files = self.list()
        return {
            "file_count": len(files),
            "total_bytes": sum(f.size_bytes for f in files),
        }

    # Staging area for in-flight downloads

    def _staged(self, file_name: str) -> str:
        if not STORED_NAME.match(file_name):
            raise PathTraversalAttempt("not a reserved name")
        return os.path.join(self.staging_root, file_name)

    def staging_path(self, file_name: str) -> str:
        """Staging location for a reserved name; it stays in flight until commit or discard"""
        path = self._staged(file_name)
        os.makedirs(self.staging_root, exist_ok=True)
        with self._lock:
            self._in_flight.add(_stem(file_name))
        return path

    def _release(self, file_name: str) -> None:
        with self._lock:
            self._in_flight.discard(_stem(file_name))

    def in_flight(self, file_name: str) -> bool:
        with self._lock:
            return _stem(file_name) in self._in_flight

    def commit(self, file_name: str) -> StoredFile:
        """Move a finished staged file into the root and register it"""
        staged = self._staged(file_name)
        try:
            try:
                st = os.stat(staged)
            except FileNotFoundError:
                raise DownloadFailure("output file missing")
            if st.st_size == 0:
                self.discard(file_name)
                raise DownloadFailure("output file is empty")

            # Age counts from registration, not from whatever the extractor set
            os.utime(staged)
            target = self.resolve(file_name)
            os.replace(staged, target)
        finally:
            self._release(file_name)
        return self._stored_file(file_name, os.stat(target))

    def discard(self, file_name: str) -> int:
        """Remove every staged artifact belonging to a reserved name"""
        try:
            return remove_artifacts(self.staging_root, _stem(file_name))
        finally:
            self._release(file_name)

    def _purge_staging(self, cutoff: float) -> None:
        """Drop orphaned staged leftovers older than cutoff (e.g. from a crashed process)"""
        try:
            entries = list(os.scandir(self.staging_root))
        except FileNotFoundError:
            return
        for entry in entries:
            if self.in_flight(entry.name):
                continue
            try:
                if entry.is_file(follow_symlinks=False) and entry.stat().st_mtime < cutoff:
                    os.remove(entry.path)
                    logger.info(f"Purged stale staging file {entry.name}")
            except FileNotFoundError:
                continue


def _stem(file_name: str) -> str:
    # video_<id> for the name itself and for extractor fragments like video_<id>.f137.mp4
    return file_name.split(".", 1)[0]
