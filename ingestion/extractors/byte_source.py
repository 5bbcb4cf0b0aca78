"""
Decompressing byte source for dump files
"""

import gzip
import zlib
from pathlib import Path
from typing import IO, Iterator, Optional, Union
from core.config import settings
from core.exceptions import IOFailure
import logging

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"


class DumpByteSource:
    """
    Sequential, bounded-memory byte stream over one dump file.

    Supports:
    - gzip-compressed dumps (detected by magic bytes, not by suffix)
    - plain XML files

    The decompressed content is never materialized: at most one chunk is
    held at a time.
    """

    def __init__(self, file_path: Union[str, Path], chunk_size: Optional[int] = None):
        self.file_path = Path(file_path)
        self.chunk_size = chunk_size or settings.READ_CHUNK_SIZE
        self.bytes_read = 0
        self.compressed: Optional[bool] = None

    def _open(self) -> IO[bytes]:
        """Open the file, transparently decompressing gzip"""
        with open(self.file_path, "rb") as probe:
            self.compressed = probe.read(2) == GZIP_MAGIC

        if self.compressed:
            return gzip.open(self.file_path, "rb")
        return open(self.file_path, "rb")

    def _failure(self, message: str, exc: Exception) -> IOFailure:
        return IOFailure(
            message,
            context={
                "file_path": str(self.file_path),
                "compressed": self.compressed,
                "bytes_read": self.bytes_read
            },
            original_exception=exc
        )

    def iter_chunks(self) -> Iterator[bytes]:
        """
        Yield decompressed chunks in original order.

        Raises:
            IOFailure: Missing/unreadable file, corrupt or truncated compression frame
        """
        self.bytes_read = 0

        try:
            stream = self._open()
        except OSError as e:
            raise self._failure("Cannot open dump file", e)

        logger.info(
            f"Reading {self.file_path.name} "
            f"({'gzip' if self.compressed else 'plain'}, chunk={self.chunk_size})"
        )

        with stream:
            while True:
                try:
                    chunk = stream.read(self.chunk_size)
                except (OSError, EOFError, zlib.error) as e:
                    # gzip.BadGzipFile is an OSError; a cut-off frame is an EOFError
                    raise self._failure("Cannot decompress dump file", e)

                if not chunk:
                    break

                self.bytes_read += len(chunk)
                yield chunk

        logger.debug(f"Read {self.bytes_read} bytes from {self.file_path.name}")
