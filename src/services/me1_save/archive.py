"""ZIP archive adapter for the entries embedded in a save file.

The save container only needs named-entry reads and ordered, deflated writes
over in-memory buffers.  Everything zipfile-specific stays in this module.
"""

import io
import zlib
from typing import List, Optional, Set
from zipfile import ZIP_DEFLATED, BadZipFile, LargeZipFile, ZipFile, ZipInfo

from .errors import CorruptArchive, EntryNotFound
from .models import SaveEntryInfo

# Written entries get a fixed timestamp so that re-encoding is reproducible.
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)
_UNIX_SYSTEM = 3
_FILE_MODE = 0o100644


class SaveArchive:
    """Read-only view of an archive held in memory."""

    def __init__(self, zip_file: ZipFile):
        self._zip = zip_file

    @classmethod
    def open(cls, data: bytes) -> "SaveArchive":
        try:
            return cls(ZipFile(io.BytesIO(data), "r"))
        except (BadZipFile, LargeZipFile, EOFError, ValueError) as e:
            raise CorruptArchive(f"Not a valid archive: {e}") from e

    def names(self) -> Set[str]:
        return set(self._zip.namelist())

    def __contains__(self, name: str) -> bool:
        return name in self.names()

    def entries(self) -> List[SaveEntryInfo]:
        """Entry sizes in archive order."""
        return [
            SaveEntryInfo(
                name=info.filename,
                size=info.file_size,
                compressed_size=info.compress_size,
                is_dir=info.is_dir(),
            )
            for info in self._zip.infolist()
        ]

    def extract(self, name: str) -> bytes:
        """Return the decompressed content of one entry."""
        try:
            info = self._zip.getinfo(name)
        except KeyError:
            raise EntryNotFound(name) from None
        try:
            return self._zip.read(info)
        except (BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            # RuntimeError: zipfile refuses encrypted entries without a password
            raise CorruptArchive(f"Cannot extract {name}: {e}") from e

    def close(self) -> None:
        self._zip.close()

    def __enter__(self) -> "SaveArchive":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class SaveArchiveWriter:
    """Builds a new archive into a fresh in-memory buffer.

    Entries appear in the output in the order ``write_entry`` is called.
    """

    def __init__(self, compresslevel: Optional[int] = None):
        self._buffer = io.BytesIO()
        self._zip = ZipFile(self._buffer, "w", compression=ZIP_DEFLATED)
        self._compresslevel = compresslevel
        self._finished = False

    def write_entry(self, name: str, data: bytes, compress_type: int = ZIP_DEFLATED) -> None:
        if self._finished:
            raise ValueError("Archive already finished")
        info = ZipInfo(name, date_time=FIXED_DATE_TIME)
        info.compress_type = compress_type
        info.create_system = _UNIX_SYSTEM
        info.external_attr = _FILE_MODE << 16
        self._zip.writestr(info, bytes(data), compresslevel=self._compresslevel)

    def finish(self) -> bytes:
        """Write the central directory and return the archive bytes."""
        if not self._finished:
            self._zip.close()
            self._finished = True
        return self._buffer.getvalue()
