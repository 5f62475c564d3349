"""
Chunk Storage for Multipart Uploads
Writes upload chunks to a per-user, per-upload directory and checks
reported parts against what actually landed on disk.
"""

import os
import re
import aiofiles
import aiofiles.os
from typing import Iterable, List

# Configuration
CHUNKS_DIR = os.getenv('UPLOAD_CHUNKS_DIR') or os.getenv('TEMP_CHUNKS_DIR', './temp-uploads')
UPLOAD_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]{1,64}$')

class ChunkStorageManager:
    """Manages chunk files for in-flight uploads"""

    def __init__(self, base_dir: str = CHUNKS_DIR):
        self.base_dir = base_dir

    @staticmethod
    def is_valid_upload_id(upload_id: str) -> bool:
        """Upload ids become directory names, so only plain tokens are accepted"""
        return bool(upload_id and UPLOAD_ID_PATTERN.match(upload_id))

    def get_upload_dir(self, user_id: int, upload_id: str) -> str:
        return os.path.join(self.base_dir, str(user_id), upload_id)

    def get_chunk_path(self, user_id: int, upload_id: str, chunk_index: int) -> str:
        return os.path.join(self.get_upload_dir(user_id, upload_id), f"chunk_{chunk_index}")

    async def save_chunk(self, user_id: int, upload_id: str, chunk_index: int, content: bytes) -> str:
        """Write chunk bytes verbatim; an existing chunk with the same index is replaced"""
        await aiofiles.os.makedirs(self.get_upload_dir(user_id, upload_id), exist_ok=True)
        chunk_path = self.get_chunk_path(user_id, upload_id, chunk_index)
        async with aiofiles.open(chunk_path, 'wb') as f:
            await f.write(content)
        return chunk_path

    async def read_chunk(self, user_id: int, upload_id: str, chunk_index: int) -> bytes:
        async with aiofiles.open(self.get_chunk_path(user_id, upload_id, chunk_index), 'rb') as f:
            return await f.read()

    async def find_unverified_parts(self, user_id: int, upload_id: str, parts: Iterable) -> List[int]:
        """Return chunk indices whose reported part has no matching chunk file.

        A part fails when its chunk file is missing, or when it reports a
        size that differs from the file on disk.
        """
        unverified = []
        for part in parts:
            chunk_path = self.get_chunk_path(user_id, upload_id, part.chunk_index)
            if not await aiofiles.os.path.exists(chunk_path):
                unverified.append(part.chunk_index)
                continue
            if part.size is not None and await aiofiles.os.path.getsize(chunk_path) != part.size:
                unverified.append(part.chunk_index)
        return unverified

# Global instance
chunk_storage = ChunkStorageManager()
