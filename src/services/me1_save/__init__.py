from .cursor import SaveCursor  # noqa: F401
from .codec import SaveData, decode_u32, encode_u32, decode_entry, encode_to_bytes  # noqa: F401
from .errors import (  # noqa: F401
    SaveDataError,
    TruncatedInput,
    InvalidOffset,
    CorruptArchive,
    EntryNotFound,
    MissingRequiredEntry,
    NestedDecodeError,
    TrailingBytes,
    RoundTripMismatch,
)
from .models import (  # noqa: F401
    Dummy,
    RawData,
    Player,
    State,
    WorldSavePackage,
    SaveEntryInfo,
    SaveSummary,
    RoundTripReport,
)
from .archive import SaveArchive, SaveArchiveWriter  # noqa: F401
from .save_game import (  # noqa: F401
    Me1SaveGame,
    PLAYER_ENTRY,
    STATE_ENTRY,
    WORLD_SAVE_PACKAGE_ENTRY,
)
from .handler import SaveHandler, first_difference, header_bytes  # noqa: F401
