"""
Selected-photo handles.

A handle is anything that can resolve, asynchronously, to the raw bytes
of a photo the user picked. Resolution may yield None (nothing was
selected, or the upload was empty) or raise OSError; FlightFinder maps
both to "Failed to load selected image".
"""

import asyncio
from pathlib import Path
from typing import Optional, Protocol, Union


class PhotoHandle(Protocol):
    """Reference to a user-selected photo."""

    async def load_bytes(self) -> Optional[bytes]:
        ...


class BytesPhoto:
    """A photo already held in memory, e.g. an HTTP upload."""

    def __init__(self, data: Optional[bytes], filename: Optional[str] = None):
        self.data = data
        self.filename = filename

    async def load_bytes(self) -> Optional[bytes]:
        return self.data or None

    def __repr__(self) -> str:
        size = len(self.data) if self.data else 0
        return f'<BytesPhoto {self.filename or "?"} {size}B>'


class FilePhoto:
    """A photo on local disk, read in a worker thread."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    async def load_bytes(self) -> Optional[bytes]:
        return await asyncio.to_thread(self.path.read_bytes)

    def __repr__(self) -> str:
        return f'<FilePhoto {self.path}>'
