"""Codec contract shared by every save entity.

Anything that lives in a save file implements ``SaveData``: a classmethod
``decode`` that consumes its bytes from a ``SaveCursor`` and an ``encode``
that appends them to a ``bytearray``.  The container composes opaque spans and
nested records through this contract alone.
"""

import struct
from typing import Any, Protocol, Type, TypeVar, runtime_checkable

from .cursor import SaveCursor
from .errors import TrailingBytes

T = TypeVar("T", bound="SaveData")

_U32 = struct.Struct("<I")


@runtime_checkable
class SaveData(Protocol):
    @classmethod
    def decode(cls: Type[T], cursor: SaveCursor) -> T:
        ...

    def encode(self, output: bytearray) -> None:
        ...

    def draw_raw_ui(self, gui: Any, ident: str) -> None:
        ...


def decode_u32(cursor: SaveCursor) -> int:
    """Read an unsigned little-endian 32-bit integer."""
    return _U32.unpack(cursor.read(_U32.size))[0]


def encode_u32(value: int, output: bytearray) -> None:
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"u32 out of range: {value}")
    output.extend(_U32.pack(value))


def decode_entry(record_type: Type[T], data: bytes) -> T:
    """Decode one archive entry's bytes with a fresh cursor.

    The record must consume the whole entry; leftovers would be lost on the
    next encode.
    """
    cursor = SaveCursor(data)
    record = record_type.decode(cursor)
    if not cursor.is_at_end():
        raise TrailingBytes(cursor.remaining, cursor.position)
    return record


def encode_to_bytes(record: SaveData) -> bytes:
    output = bytearray()
    record.encode(output)
    return bytes(output)
