import contextlib
import io
import itertools
import mmap
from typing import Any, BinaryIO, Iterator, Union

next_position_hint = itertools.count()

BytesReadType = Union[bytes, bytearray, mmap.mmap, memoryview]
BytesWriteType = Union[bytearray, mmap.mmap, memoryview]
SourceType = Union[BytesReadType, BinaryIO]


def is_bytes( obj: Any ) -> bool:
    """Returns whether obj is an acceptable Python byte string."""
    return isinstance( obj, getattr( BytesReadType, '__args__' ) )


@contextlib.contextmanager
def read( fp: BinaryIO ) -> Iterator[BytesReadType]:
    """Map the contents of a file object into memory, read-only.

    Falls back to reading the whole file when it can't be mapped
    (e.g. empty files or in-memory streams).
    """
    try:
        region = mmap.mmap( fp.fileno(), 0, access=mmap.ACCESS_READ )
    except (OSError, ValueError, io.UnsupportedOperation):
        region = None

    if region is None:
        yield fp.read()
        return

    try:
        yield region
    finally:
        region.close()


def read_at( source: SourceType, offset: int, size: int ) -> bytes:
    """Read up to size bytes from source, starting at offset.

    source
        Either a byte string or a seekable binary file object.

    Returns fewer than size bytes if the source ends early.
    """
    if offset < 0:
        raise ValueError( 'Offset can\'t be a negative number!' )
    if is_bytes( source ):
        return bytes( source[offset:offset+size] )
    source.seek( offset )
    return source.read( size )
