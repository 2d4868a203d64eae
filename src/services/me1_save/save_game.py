"""Mass Effect 1 save container (``.MassEffectSave``).

Layout::

    0x00  8 bytes          leading marker (opaque)
    0x08  u32 LE           offset of the embedded archive from file start
    0x0C  offset - 12      pre-archive region (opaque)
    offset .. EOF          ZIP archive: player.sav, state.sav,
                           optional WorldSavePackage.sav

Header bytes are kept verbatim; the archive is rebuilt on every encode, so
the first re-encode may differ from the original file while later ones are
byte-identical.
"""

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, List, Optional, Type

from .archive import SaveArchive, SaveArchiveWriter
from .codec import SaveData, decode_entry, decode_u32, encode_to_bytes, encode_u32
from .cursor import SaveCursor
from .errors import InvalidOffset, MissingRequiredEntry, NestedDecodeError
from .models import Dummy, Player, State, WorldSavePackage

HEADER_SIZE = 12
MAX_ZIP_OFFSET = 0xFFFFFFFF

PLAYER_ENTRY = "player.sav"
STATE_ENTRY = "state.sav"
WORLD_SAVE_PACKAGE_ENTRY = "WorldSavePackage.sav"

Begin = Dummy.of_size(8)


def _decode_nested(archive: SaveArchive, name: str, record_type: Type[SaveData]) -> Any:
    data = archive.extract(name)
    try:
        return decode_entry(record_type, data)
    except Exception as e:
        raise NestedDecodeError(name, e) from e


@dataclass(frozen=True)
class Me1SaveGame:
    begin: Dummy
    zip_offset: int
    no_mans_land: bytes
    player: Any
    state: Any
    world_save_package: Optional[Any] = None

    player_type: ClassVar[Type[SaveData]] = Player
    state_type: ClassVar[Type[SaveData]] = State
    world_save_package_type: ClassVar[Type[SaveData]] = WorldSavePackage

    def __post_init__(self):
        if len(self.begin) != Begin.SIZE:
            raise ValueError(f"Leading marker must be {Begin.SIZE} bytes")
        if not HEADER_SIZE <= self.zip_offset <= MAX_ZIP_OFFSET:
            raise InvalidOffset(
                self.zip_offset, f"must be between {HEADER_SIZE} and {MAX_ZIP_OFFSET}"
            )
        if self.zip_offset != HEADER_SIZE + len(self.no_mans_land):
            raise InvalidOffset(
                self.zip_offset,
                f"header says the archive starts at {self.zip_offset}, "
                f"but the pre-archive region ends at {HEADER_SIZE + len(self.no_mans_land)}",
            )

    @classmethod
    def decode(cls, cursor: SaveCursor) -> "Me1SaveGame":
        begin = Begin.decode(cursor)
        zip_offset = decode_u32(cursor)
        region_size = zip_offset - HEADER_SIZE
        if region_size < 0:
            raise InvalidOffset(zip_offset, f"must be at least {HEADER_SIZE}")
        no_mans_land = cursor.read(region_size)

        with SaveArchive.open(cursor.read_to_end()) as archive:
            names = archive.names()
            for required in (PLAYER_ENTRY, STATE_ENTRY):
                if required not in names:
                    raise MissingRequiredEntry(required)

            player = _decode_nested(archive, PLAYER_ENTRY, cls.player_type)
            state = _decode_nested(archive, STATE_ENTRY, cls.state_type)

            world_save_package = None
            if WORLD_SAVE_PACKAGE_ENTRY in names:
                world_save_package = _decode_nested(
                    archive, WORLD_SAVE_PACKAGE_ENTRY, cls.world_save_package_type
                )

        return cls(
            begin=begin,
            zip_offset=zip_offset,
            no_mans_land=no_mans_land,
            player=player,
            state=state,
            world_save_package=world_save_package,
        )

    def encode(self, output: bytearray) -> None:
        self.begin.encode(output)
        encode_u32(self.zip_offset, output)
        output.extend(self.no_mans_land)

        zipper = SaveArchiveWriter()
        zipper.write_entry(PLAYER_ENTRY, encode_to_bytes(self.player))
        zipper.write_entry(STATE_ENTRY, encode_to_bytes(self.state))
        if self.world_save_package is not None:
            zipper.write_entry(
                WORLD_SAVE_PACKAGE_ENTRY, encode_to_bytes(self.world_save_package)
            )
        output.extend(zipper.finish())

    def draw_raw_ui(self, gui: Any, ident: str) -> None:
        pass

    @classmethod
    def from_bytes(cls, data: bytes) -> "Me1SaveGame":
        return cls.decode(SaveCursor(data))

    def to_bytes(self) -> bytes:
        return encode_to_bytes(self)

    def entry_names(self) -> List[str]:
        """Archive entries this save writes, in output order."""
        names = [PLAYER_ENTRY, STATE_ENTRY]
        if self.world_save_package is not None:
            names.append(WORLD_SAVE_PACKAGE_ENTRY)
        return names

    def with_no_mans_land(self, data: bytes) -> "Me1SaveGame":
        """Copy with a new pre-archive region and the offset moved to match."""
        return dataclasses.replace(
            self, no_mans_land=bytes(data), zip_offset=HEADER_SIZE + len(data)
        )
