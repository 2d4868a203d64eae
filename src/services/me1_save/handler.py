"""File-level operations on ME1 saves: load, write, verify, extract."""

import glob
import os
import shutil
import time
import traceback
from typing import Dict, List, Optional, Set, Type

from config.settings import Settings
from constants import SAVE_EXTENSION
from utils.formatting import format_hex, format_size
from utils.logging import log_error, log_info

from .archive import SaveArchive
from .codec import encode_u32
from .cursor import SaveCursor
from .errors import RoundTripMismatch, SaveDataError
from .models import RoundTripReport, SaveSummary
from .save_game import Me1SaveGame

_CHUNK = 4
HEADER_DUMP_NAME = "header.bin"


def first_difference(expected: bytes, actual: bytes) -> Optional[int]:
    """Offset of the first differing 4-byte chunk, or None when equal."""
    if expected == actual:
        return None
    for offset in range(0, max(len(expected), len(actual)), _CHUNK):
        if expected[offset : offset + _CHUNK] != actual[offset : offset + _CHUNK]:
            return offset
    return None


def _unique_name(name: str, used: Set[str]) -> str:
    """Pick a file name not in ``used`` (case-insensitive) and reserve it.

    Clashes get a numeric suffix: ``player.sav`` -> ``player_2.sav``.
    """
    stem, ext = os.path.splitext(name)
    candidate = name
    n = 2
    while candidate.lower() in used:
        candidate = f"{stem}_{n}{ext}"
        n += 1
    used.add(candidate.lower())
    return candidate


def header_bytes(game: Me1SaveGame) -> bytes:
    """Leading marker, archive offset and pre-archive region as stored."""
    output = bytearray()
    game.begin.encode(output)
    encode_u32(game.zip_offset, output)
    output.extend(game.no_mans_land)
    return bytes(output)


class SaveHandler:
    def __init__(self, settings: Optional[Settings] = None, save_type: Type[Me1SaveGame] = Me1SaveGame):
        self.settings = settings or Settings()
        self.save_type = save_type
        self._timings: Dict[str, float] = {}

    def _timed(self, label: str, func, *args):
        start = time.perf_counter()
        result = func(*args)
        elapsed = time.perf_counter() - start
        self._timings[label] = elapsed
        if self.settings.log_timings:
            log_info(f"{label}: {elapsed * 1000:.2f} ms")
        return result

    def decode(self, data: bytes) -> Me1SaveGame:
        return self.save_type.decode(SaveCursor(data))

    def load(self, path: str) -> Me1SaveGame:
        """Read and decode a save file."""
        with open(path, "rb") as f:
            data = f.read()
        return self._load_bytes(data, path)

    def _load_bytes(self, data: bytes, path: str) -> Me1SaveGame:
        try:
            return self._timed("Deserialize", self.decode, data)
        except SaveDataError as e:
            log_error(f"Failed to decode {path}: {e}", type(e).__name__, traceback.format_exc())
            raise

    def save(self, game: Me1SaveGame, path: str) -> str:
        """Encode ``game`` to ``path``.

        With ``verify_after_write`` the encoded bytes must decode before
        anything on disk is touched.

        Returns the backup path when an existing file was copied aside, or an
        empty string.
        """
        data = self._timed("Serialize", game.to_bytes)

        if self.settings.verify_after_write:
            try:
                self.decode(data)
            except SaveDataError as e:
                log_error(
                    f"Encoded save for {path} does not decode, nothing written: {e}",
                    type(e).__name__,
                    traceback.format_exc(),
                )
                raise

        backup_path = ""
        if self.settings.backup_enabled and os.path.exists(path):
            backup_path = path + self.settings.backup_suffix
            shutil.copy2(path, backup_path)

        out_dir = os.path.dirname(path)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        tmp_path = path + ".tmp"
        with open(tmp_path, "wb") as f:
            f.write(data)
        os.replace(tmp_path, path)
        log_info(f"Wrote {path} ({format_size(len(data))})")
        return backup_path

    def verify_round_trip(self, data: bytes, path: str = "") -> RoundTripReport:
        """Decode and encode twice; the two encodings must match exactly.

        Raises:
            RoundTripMismatch: At the first differing 4-byte chunk.
        """
        self._timings = {}
        game = self._timed("Deserialize 1", self.decode, data)
        first = self._timed("Serialize 1", game.to_bytes)
        game = self._timed("Deserialize 2", self.decode, first)
        second = self._timed("Serialize 2", game.to_bytes)

        offset = first_difference(first, second)
        if offset is not None:
            error = RoundTripMismatch(
                offset, first[offset : offset + _CHUNK], second[offset : offset + _CHUNK]
            )
            log_error(f"Round trip unstable for {path or '<buffer>'}: {error}", type(error).__name__)
            raise error

        return RoundTripReport(
            path=path,
            original_size=len(data),
            first_size=len(first),
            second_size=len(second),
            identical_to_original=first == data,
            timings=dict(self._timings),
        )

    def verify_file(self, path: str) -> RoundTripReport:
        with open(path, "rb") as f:
            data = f.read()
        return self.verify_round_trip(data, path)

    def describe(self, game: Me1SaveGame, path: str = "", data: Optional[bytes] = None) -> SaveSummary:
        """Summarise a save.

        Entry sizes come from ``data`` when given (the file as read), otherwise
        from a fresh encode of ``game``.
        """
        if data is None:
            data = game.to_bytes()
        with SaveArchive.open(data[game.zip_offset :]) as archive:
            entries = archive.entries()
        return SaveSummary(
            path=path,
            file_size=len(data),
            begin_hex=format_hex(game.begin.data, limit=len(game.begin)),
            zip_offset=game.zip_offset,
            no_mans_land_size=len(game.no_mans_land),
            entries=entries,
            has_world_save_package=game.world_save_package is not None,
        )

    def describe_file(self, path: str) -> SaveSummary:
        with open(path, "rb") as f:
            data = f.read()
        return self.describe(self._load_bytes(data, path), path, data)

    def extract_entries(self, path: str, out_dir: Optional[str] = None) -> List[str]:
        """Dump the header and every archive entry of ``path`` into ``out_dir``.

        Entries are written exactly as stored in the file, without going
        through the record codecs.

        Returns:
            Paths of the files written, header first.
        """
        with open(path, "rb") as f:
            data = f.read()
        game = self._load_bytes(data, path)
        base = os.path.splitext(os.path.basename(path))[0]
        out_dir = out_dir or os.path.join(self.settings.extract_dir, base)
        os.makedirs(out_dir, exist_ok=True)

        written = []
        header_path = os.path.join(out_dir, HEADER_DUMP_NAME)
        with open(header_path, "wb") as f:
            f.write(header_bytes(game))
        written.append(header_path)

        used = {HEADER_DUMP_NAME.lower()}
        with SaveArchive.open(data[game.zip_offset :]) as archive:
            for entry in archive.entries():
                if entry.is_dir:
                    continue
                target = _unique_name(os.path.basename(entry.name), used)
                entry_path = os.path.join(out_dir, target)
                with open(entry_path, "wb") as f:
                    f.write(archive.extract(entry.name))
                written.append(entry_path)

        log_info(f"Extracted {len(written)} files from {path} to {out_dir}")
        return written

    def find_saves(self, directory: Optional[str] = None) -> List[str]:
        """Sorted list of save files below ``directory``."""
        directory = directory or self.settings.saves_dir
        pattern = os.path.join(directory, "**", f"*{SAVE_EXTENSION}")
        return sorted(glob.glob(pattern, recursive=True))

    @property
    def timings(self) -> Dict[str, float]:
        return dict(self._timings)
