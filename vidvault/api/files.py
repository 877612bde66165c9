import mimetypes
import os
import stat
from typing import AsyncIterator, List
from urllib.parse import quote

import aiofiles
from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from vidvault.api.deps import get_file_store
from vidvault.api.download import file_url
from vidvault.core.errors import FileNotFound
from vidvault.core.logging import log_error, log_info
from vidvault.models.response import DeleteResponse, StoredFileResponse
from vidvault.services.storage import FileStore

CHUNK_SIZE = 4 * 1024 * 1024

router = APIRouter()


@router.get("/files", response_model=List[StoredFileResponse])
async def list_files(store: FileStore = Depends(get_file_store)):
    """List stored files, most recent first"""
    return [
        StoredFileResponse(
            file_name=f.file_name,
            size_bytes=f.size_bytes,
            created_at=f.created_at,
            download_url=file_url(f.file_name),
        )
        for f in store.list()
    ]


@router.get("/files/{file_name}")
async def get_file(request: Request, file_name: str, store: FileStore = Depends(get_file_store)):
    """Stream a stored file"""
    path = store.resolve(file_name)
    # Hold the descriptor from here on: a concurrent delete or sweep can no
    # longer shorten the body below the advertised length
    try:
        f = await aiofiles.open(path, "rb")
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        raise FileNotFound(file_name)
    st = os.fstat(f.fileno())
    if not stat.S_ISREG(st.st_mode):
        await f.close()
        raise FileNotFound(file_name)

    async def generate() -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await f.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
        except OSError as e:
            log_error(request, f"Streaming error for {file_name}: {str(e)}")
            raise
        finally:
            await f.close()

    log_info(request, f"Serving {file_name} ({st.st_size} bytes)")
    media_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
    headers = {
        "Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}",
        "X-Content-Type-Options": "nosniff",
        "Cache-Control": "no-cache",
        "Content-Length": str(st.st_size),
    }
    return StreamingResponse(generate(), media_type=media_type, headers=headers)


@router.delete("/files/{file_name}", response_model=DeleteResponse)
async def delete_file(request: Request, file_name: str, store: FileStore = Depends(get_file_store)):
    """Delete a stored file"""
    if not store.delete(file_name):
        raise FileNotFound(file_name)
    log_info(request, f"Deleted {file_name}")
    return DeleteResponse(deleted=True, file_name=file_name)
