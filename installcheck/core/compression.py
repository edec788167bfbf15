"""
Compression utilities for installcheck

Synthesis files are compressed, and the format changed over the years:
- zstd (current Mageia format)
- gzip (legacy)
- xz/lzma (legacy)
- bzip2 (legacy)

libsolv only sees the decompressed bytes, so the format is detected here from
the magic bytes rather than from the file extension (.cz is used for all).
"""

import bz2
import gzip
import lzma
from pathlib import Path
from typing import Union

import zstandard as zstd

from .errors import RepositoryLoadError

# Magic bytes for format detection
MAGIC_ZSTD = b'\x28\xb5\x2f\xfd'
MAGIC_GZIP = b'\x1f\x8b'
MAGIC_XZ = b'\xfd7zXZ\x00'
MAGIC_BZ2 = b'BZ'


def detect_format(data: bytes) -> str:
    """Detect compression format from magic bytes.

    Args:
        data: First 8+ bytes of the file

    Returns:
        Format name: 'zstd', 'gzip', 'xz', 'bzip2', or 'plain'
    """
    if data[:4] == MAGIC_ZSTD:
        return 'zstd'
    elif data[:2] == MAGIC_GZIP:
        return 'gzip'
    elif data[:6] == MAGIC_XZ:
        return 'xz'
    elif data[:2] == MAGIC_BZ2:
        return 'bzip2'
    else:
        return 'plain'


def decompress_stream(filename: Union[str, Path]):
    """Open a possibly compressed file and return a binary stream.

    Args:
        filename: Path to compressed file

    Returns:
        File-like object for reading decompressed data

    Raises:
        RepositoryLoadError: if the file cannot be opened
    """
    path = Path(filename)

    try:
        with open(path, 'rb') as f:
            magic = f.read(8)
    except OSError as e:
        raise RepositoryLoadError(path, e.strerror or str(e)) from e

    fmt = detect_format(magic)

    if fmt == 'zstd':
        f = open(path, 'rb')
        dctx = zstd.ZstdDecompressor()
        return dctx.stream_reader(f, read_across_frames=True)

    elif fmt == 'gzip':
        return gzip.open(path, 'rb')

    elif fmt == 'xz':
        return lzma.open(path, 'rb')

    elif fmt == 'bzip2':
        return bz2.open(path, 'rb')

    else:
        return open(path, 'rb')


def read_decompressed(filename: Union[str, Path]) -> bytes:
    """Read a whole file, decompressing it if needed.

    Raises:
        RepositoryLoadError: if the file cannot be opened or is corrupt
    """
    stream = decompress_stream(filename)
    try:
        with stream:
            return stream.read()
    except (OSError, EOFError, ValueError, lzma.LZMAError, zstd.ZstdError) as e:
        raise RepositoryLoadError(filename, f"cannot decompress: {e}") from e
