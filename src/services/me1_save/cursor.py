"""Sequential reader over an in-memory save buffer."""

from .errors import TruncatedInput


class SaveCursor:
    """Position-tracked reader over an immutable byte buffer.

    A cursor is created for one decode pass: once over the whole file, and
    again for each archive entry (starting at offset 0 of that entry).
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._position = 0

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return len(self._data) - self._position

    def is_at_end(self) -> bool:
        return self._position >= len(self._data)

    def read(self, n: int) -> bytes:
        """Return the next n bytes and advance past them."""
        if n < 0:
            raise ValueError(f"Cannot read a negative byte count ({n})")
        if n > self.remaining:
            raise TruncatedInput(n, self.remaining, self._position)
        start = self._position
        self._position += n
        return self._data[start : self._position]

    def read_to_end(self) -> bytes:
        """Return everything left in the buffer (possibly empty)."""
        start = self._position
        self._position = len(self._data)
        return self._data[start:]

    def __repr__(self) -> str:
        return f"SaveCursor(position={self._position}, size={len(self._data)})"
