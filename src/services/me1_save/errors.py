"""Exception types raised while decoding or encoding ME1 save files."""


class SaveDataError(Exception):
    """Base class for all save container failures."""
    pass


class TruncatedInput(SaveDataError):
    """Raised when a cursor read asks for more bytes than remain."""

    def __init__(self, requested: int, remaining: int, position: int):
        self.requested = requested
        self.remaining = remaining
        self.position = position
        super().__init__(
            f"Truncated input at offset 0x{position:x}: "
            f"needed {requested} bytes, {remaining} left"
        )


class InvalidOffset(SaveDataError):
    """Raised when the archive offset does not leave room for the header."""

    def __init__(self, zip_offset: int, detail: str = ""):
        self.zip_offset = zip_offset
        message = f"Invalid archive offset {zip_offset}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class CorruptArchive(SaveDataError):
    """Raised when the embedded archive cannot be read."""
    pass


class EntryNotFound(SaveDataError):
    """Raised when extracting an entry the archive does not contain."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Archive has no entry named {name!r}")


class MissingRequiredEntry(SaveDataError):
    """Raised when player.sav or state.sav is absent from the archive."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Required archive entry {name!r} is missing")


class TrailingBytes(SaveDataError):
    """Raised when a record decoder leaves bytes unread in its entry."""

    def __init__(self, remaining: int, position: int):
        self.remaining = remaining
        self.position = position
        super().__init__(f"{remaining} unread bytes after offset 0x{position:x}")


class NestedDecodeError(SaveDataError):
    """Wraps a failure raised while decoding one archive entry."""

    def __init__(self, entry_name: str, cause: BaseException):
        self.entry_name = entry_name
        self.cause = cause
        super().__init__(f"Failed to decode {entry_name}: {cause}")


class RoundTripMismatch(SaveDataError):
    """Raised when two encode generations of the same save differ."""

    def __init__(self, offset: int, expected: bytes, actual: bytes):
        self.offset = offset
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"0x{offset:02x} : {expected.hex(' ') or '<eof>'} != {actual.hex(' ') or '<eof>'}"
        )
