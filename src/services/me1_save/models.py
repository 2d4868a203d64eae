"""Opaque save records: byte spans kept verbatim without interpretation."""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Type

from .cursor import SaveCursor


@dataclass(frozen=True)
class Dummy:
    """Fixed-length run of bytes whose meaning is unknown.

    Use ``Dummy.of_size(n)`` to get the codec for a given width; the base
    class itself has no fixed size and cannot be decoded.
    """

    SIZE: ClassVar[Optional[int]] = None
    _sized: ClassVar[Dict[int, Type["Dummy"]]] = {}

    data: bytes

    def __post_init__(self):
        if self.SIZE is not None and len(self.data) != self.SIZE:
            raise ValueError(
                f"{type(self).__name__} holds {self.SIZE} bytes, got {len(self.data)}"
            )

    @classmethod
    def of_size(cls, size: int) -> Type["Dummy"]:
        if size < 0:
            raise ValueError(f"Negative span size: {size}")
        if size not in cls._sized:
            cls._sized[size] = type(f"Dummy{size}", (Dummy,), {"SIZE": size})
        return cls._sized[size]

    @classmethod
    def zeroed(cls) -> "Dummy":
        return cls(bytes(cls._require_size()))

    @classmethod
    def _require_size(cls) -> int:
        if cls.SIZE is None:
            raise TypeError("Dummy has no size; use Dummy.of_size(n)")
        return cls.SIZE

    @classmethod
    def decode(cls, cursor: SaveCursor) -> "Dummy":
        return cls(cursor.read(cls._require_size()))

    def encode(self, output: bytearray) -> None:
        output.extend(self.data)

    def draw_raw_ui(self, gui: Any, ident: str) -> None:
        pass

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class RawData:
    """Terminal opaque span: consumes whatever is left in its buffer."""

    data: bytes = b""

    @classmethod
    def decode(cls, cursor: SaveCursor) -> "RawData":
        return cls(cursor.read_to_end())

    def encode(self, output: bytearray) -> None:
        output.extend(self.data)

    def draw_raw_ui(self, gui: Any, ident: str) -> None:
        pass

    def __len__(self) -> int:
        return len(self.data)


class WorldSavePackage(RawData):
    """Body of WorldSavePackage.sav, kept as-is."""


# player.sav and state.sav are decoded by their own record codecs; until one
# is plugged into the container these keep the entry bytes untouched.
class Player(RawData):
    """Contents of player.sav."""


class State(RawData):
    """Contents of state.sav."""


@dataclass
class SaveEntryInfo:
    """Size details of one archive entry, for reporting."""

    name: str
    size: int
    compressed_size: int = 0
    is_dir: bool = False


@dataclass
class SaveSummary:
    """Human-oriented overview of a decoded save."""

    path: str
    file_size: int
    begin_hex: str
    zip_offset: int
    no_mans_land_size: int
    entries: List[SaveEntryInfo] = field(default_factory=list)
    has_world_save_package: bool = False


@dataclass
class RoundTripReport:
    """Outcome of a decode/encode/decode/encode stability check."""

    path: str
    original_size: int
    first_size: int
    second_size: int
    identical_to_original: bool
    timings: Dict[str, float] = field(default_factory=dict)
