"""
Compression helpers for apt logs and indexes

logrotate leaves history.log.N.gz behind; some derivatives rotate with
zstd or xz instead. Format is sniffed from magic bytes, never from the
file extension:
- gzip (Debian default)
- zstd
- xz/lzma
- bzip2
"""

import gzip
import logging
import lzma
import zlib
from pathlib import Path
from typing import Iterator, List, Union

from .errors import CorruptFileError

logger = logging.getLogger(__name__)

# Magic bytes for format detection
MAGIC_ZSTD = b'\x28\xb5\x2f\xfd'
MAGIC_GZIP = b'\x1f\x8b'
MAGIC_XZ = b'\xfd7zXZ\x00'
MAGIC_BZ2 = b'BZh'

# Raised by the stdlib decoders on damaged or truncated streams
_STREAM_ERRORS = (zlib.error, lzma.LZMAError, gzip.BadGzipFile, EOFError)


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
    elif data[:3] == MAGIC_BZ2:
        return 'bzip2'
    else:
        return 'plain'


def _zstd():
    try:
        import zstandard
    except ImportError:
        raise ImportError(
            "Module 'zstandard' required for zstd decompression. "
            "Install with: pip install zstandard"
        )
    return zstandard


def _read_text(f, fmt: str, encoding: str) -> str:
    if fmt == 'zstd':
        dctx = _zstd().ZstdDecompressor()
        with dctx.stream_reader(f) as reader:
            return reader.read().decode(encoding, errors='replace')

    elif fmt == 'gzip':
        with gzip.open(f, 'rt', encoding=encoding, errors='replace') as gz:
            return gz.read()

    elif fmt == 'xz':
        with lzma.open(f, 'rt', encoding=encoding, errors='replace') as xz:
            return xz.read()

    elif fmt == 'bzip2':
        import bz2
        with bz2.open(f, 'rt', encoding=encoding, errors='replace') as bz:
            return bz.read()

    return f.read().decode(encoding, errors='replace')


def decompress(filename: Union[str, Path], encoding: str = 'utf-8') -> str:
    """Read a possibly compressed file and return its text.

    Undecodable bytes are replaced; apt logs occasionally carry
    commandlines in the user's locale.

    Raises:
        OSError: If the file cannot be opened or read
        CorruptFileError: If the compressed stream is damaged
    """
    path = Path(filename)

    with open(path, 'rb') as f:
        magic = f.read(8)
        f.seek(0)
        fmt = detect_format(magic)
        logger.debug("Reading %s (%s)", path, fmt)
        errors = _STREAM_ERRORS
        if fmt == 'zstd':
            errors += (_zstd().ZstdError,)
        try:
            return _read_text(f, fmt, encoding)
        except errors as e:
            raise CorruptFileError(path, str(e) or type(e).__name__) from e


def read_lines(filename: Union[str, Path]) -> List[str]:
    """Return the lines of a possibly compressed file (like zcat | cat)."""
    return decompress(filename).splitlines()


def iter_lines(filenames: List[Union[str, Path]]) -> Iterator[str]:
    """Yield lines of several files in order, skipping unreadable ones.

    Equivalent of `zgrep -h` over a file list: unreadable or corrupt
    rotations are logged and skipped so one bad archive does not
    hide the others.
    """
    for filename in filenames:
        try:
            lines = read_lines(filename)
        except (OSError, CorruptFileError) as e:
            logger.warning("Skipping unreadable file %s: %s", filename, e)
            continue
        yield from lines
