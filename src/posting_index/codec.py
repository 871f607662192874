"""Binary codec for posting lists.

A posting blob is a length-prefixed image of fixed-width integers::

    blob := len:u64 || elem[0] || elem[1] || ... || elem[len - 1]

``len`` is the element count (not the byte count). Both the header and the
elements are written in host byte order with no padding, i.e. the raw
``array.tobytes()`` image.

The format is host dependent. Blobs are only portable between processes that
share :data:`HOST_LAYOUT`; persistent stores record the layout and refuse to
reopen data written by a different one.
"""

from __future__ import annotations

from array import array
from collections.abc import Iterable
import io
import struct
import sys
from typing import BinaryIO


DEFAULT_TYPECODE = "Q"

_HEADER = struct.Struct("=Q")
HEADER_SIZE = _HEADER.size

HOST_LAYOUT: dict[str, str] = {
    "byteorder": sys.byteorder,
    "header_bytes": str(HEADER_SIZE),
    "element_typecode": DEFAULT_TYPECODE,
    "element_bytes": str(array(DEFAULT_TYPECODE).itemsize),
}


class CodecError(ValueError):
    """Raised when a blob cannot be decoded."""


class TruncatedBlobError(CodecError):
    """Fewer bytes than the length header remain in the buffer."""


class LengthOverflowError(CodecError):
    """The declared element count runs past the end of the buffer."""


class TrailingBytesError(CodecError):
    """A whole blob carries bytes after its declared elements."""


def write_vector(
    stream: BinaryIO | bytearray,
    values: Iterable[int],
    typecode: str = DEFAULT_TYPECODE,
) -> int:
    """Append ``values`` to ``stream`` and return the number of bytes written."""
    data = values if isinstance(values, array) and values.typecode == typecode else array(typecode, values)
    header = _HEADER.pack(len(data))
    payload = data.tobytes()

    if isinstance(stream, bytearray):
        stream.extend(header)
        stream.extend(payload)
    else:
        stream.write(header)
        stream.write(payload)
    return len(header) + len(payload)


def _remaining(stream: BinaryIO) -> int | None:
    if stream.seekable():
        pos = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(pos)
        return end - pos
    return None


def read_vector(stream: BinaryIO, typecode: str = DEFAULT_TYPECODE) -> array:
    """Consume one length-prefixed vector from the front of ``stream``."""
    header = stream.read(HEADER_SIZE)
    if len(header) < HEADER_SIZE:
        raise TruncatedBlobError(f"Blob header needs {HEADER_SIZE} bytes, got {len(header)}")

    (count,) = _HEADER.unpack(header)
    data = array(typecode)
    expected = count * data.itemsize
    remaining = _remaining(stream)
    if remaining is not None and expected > remaining:
        raise LengthOverflowError(f"Blob declares {count} elements ({expected} bytes) but only {remaining} bytes remain")

    payload = stream.read(expected) if expected <= sys.maxsize else b""
    if len(payload) < expected:
        raise LengthOverflowError(
            f"Blob declares {count} elements ({expected} bytes) but only {len(payload)} bytes remain"
        )

    data.frombytes(payload)
    return data


def encode(values: Iterable[int], typecode: str = DEFAULT_TYPECODE) -> bytes:
    buf = bytearray()
    write_vector(buf, values, typecode)
    return bytes(buf)


def decode(blob: bytes, typecode: str = DEFAULT_TYPECODE) -> array:
    """Decode a complete blob, rejecting anything left after the elements."""
    stream = io.BytesIO(blob)
    data = read_vector(stream, typecode)
    leftover = len(blob) - stream.tell()
    if leftover:
        raise TrailingBytesError(f"Blob has {leftover} trailing bytes after {len(data)} elements")
    return data

