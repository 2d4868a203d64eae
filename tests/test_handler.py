"""Tests for file-level save handling, settings and the command line.

Run:
    python -m pytest tests/test_handler.py
    # or directly:
    python tests/test_handler.py
"""

import json
import os
import tempfile

from save_fixtures import (
    BEGIN,
    PLAYER_DATA,
    STATE_DATA,
    WORLD_DATA,
    make_archive,
    make_save,
    make_save_with_world,
    mark_encrypted,
)

import app
from config.settings import Settings, get_default_settings, load_settings, save_settings
from services.me1_save.errors import (
    CorruptArchive,
    MissingRequiredEntry,
    NestedDecodeError,
    RoundTripMismatch,
)
from services.me1_save.handler import SaveHandler, first_difference, header_bytes
from services.me1_save.models import Player
from services.me1_save.save_game import Me1SaveGame
from utils.formatting import format_hex, format_size, truncate_text
from utils.logging import get_log_file, log_error, log_info, update_log_file_path


def _expect(exc_type, func, *args):
    try:
        func(*args)
    except exc_type as e:
        return e
    raise AssertionError(f"{exc_type.__name__} not raised")


def _write(path, data):
    with open(path, "wb") as f:
        f.write(data)
    return path


def _read(path):
    with open(path, "rb") as f:
        return f.read()


def _handler(tmpdir, **overrides):
    settings = Settings(work_dir=tmpdir, saves_dir=tmpdir, **overrides)
    update_log_file_path(tmpdir)
    return SaveHandler(settings)


# ---------------------------------------------------------------------------
# Round trip verification
# ---------------------------------------------------------------------------

def test_first_difference():
    assert first_difference(b"abcdefgh", b"abcdefgh") is None
    assert first_difference(b"abcdefgh", b"abcdefXh") == 4
    assert first_difference(b"abcd", b"abcdefgh") == 4
    assert first_difference(b"Xbcd", b"abcd") == 0
    print("  PASS: test_first_difference")


def test_verify_round_trip_report():
    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        data = make_save_with_world()
        report = handler.verify_round_trip(data, "memory")
        assert report.path == "memory"
        assert report.original_size == len(data)
        assert report.first_size == report.second_size
        assert set(report.timings) == {
            "Deserialize 1",
            "Serialize 1",
            "Deserialize 2",
            "Serialize 2",
        }
    print("  PASS: test_verify_round_trip_report")


def test_verify_reports_second_generation_drift():
    class GrowingPlayer(Player):
        def encode(self, output):
            super().encode(output)
            output.extend(b"!")

    class GrowingSaveGame(Me1SaveGame):
        player_type = GrowingPlayer

    with tempfile.TemporaryDirectory() as tmpdir:
        handler = SaveHandler(Settings(work_dir=tmpdir), save_type=GrowingSaveGame)
        update_log_file_path(tmpdir)
        err = _expect(RoundTripMismatch, handler.verify_round_trip, make_save())
        # Header bytes are replayed verbatim, so the drift is inside the archive
        assert err.offset >= 32
        assert err.offset % 4 == 0
        assert err.expected != err.actual
    print("  PASS: test_verify_reports_second_generation_drift")



# ---------------------------------------------------------------------------
# Load / save
# ---------------------------------------------------------------------------

def test_load_and_save_with_backup():
    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        original = make_save_with_world()
        path = _write(os.path.join(tmpdir, "Clare00_AutoSave.MassEffectSave"), original)

        game = handler.load(path)
        assert game.world_save_package.data == WORLD_DATA

        backup = handler.save(game, path)
        assert backup == path + ".bak"
        assert _read(backup) == original
        assert _read(path) == game.to_bytes()
        assert not os.path.exists(path + ".tmp")
    print("  PASS: test_load_and_save_with_backup")


def test_save_without_backup_to_new_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir, backup_enabled=False)
        game = Me1SaveGame.from_bytes(make_save())
        target = os.path.join(tmpdir, "out", "new.MassEffectSave")
        assert handler.save(game, target) == ""
        assert Me1SaveGame.from_bytes(_read(target)) == game
        assert not os.path.exists(target + ".bak")
    print("  PASS: test_save_without_backup_to_new_dir")


def test_save_refuses_undecodable_output():
    class RejectingPlayer(Player):
        @classmethod
        def decode(cls, cursor):
            raise ValueError("player record rejected")

    class RejectingSaveGame(Me1SaveGame):
        player_type = RejectingPlayer

    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        handler.save_type = RejectingSaveGame
        original = make_save()
        path = _write(os.path.join(tmpdir, "keep.MassEffectSave"), original)
        game = Me1SaveGame.from_bytes(original)

        err = _expect(NestedDecodeError, handler.save, game, path)
        assert err.entry_name == "player.sav"
        # The existing file is left alone and nothing else is created
        assert _read(path) == original
        assert not os.path.exists(path + ".bak")
        assert not os.path.exists(path + ".tmp")
    print("  PASS: test_save_refuses_undecodable_output")


def test_load_failure_is_logged():

    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        path = _write(os.path.join(tmpdir, "broken.MassEffectSave"), make_save([("state.sav", b"s")]))
        _expect(MissingRequiredEntry, handler.load, path)
        with open(get_log_file()) as f:
            log = f.read()
        assert "broken.MassEffectSave" in log
        assert "MissingRequiredEntry" in log
    print("  PASS: test_load_failure_is_logged")


# ---------------------------------------------------------------------------
# Describe / extract / find
# ---------------------------------------------------------------------------

def test_describe_file():
    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        data = make_save_with_world()
        path = _write(os.path.join(tmpdir, "a.MassEffectSave"), data)
        summary = handler.describe_file(path)
        assert summary.file_size == len(data)
        assert summary.begin_hex == BEGIN.hex(" ")
        assert summary.zip_offset == 32
        assert summary.no_mans_land_size == 20
        assert summary.has_world_save_package
        assert [e.name for e in summary.entries] == [
            "player.sav",
            "state.sav",
            "WorldSavePackage.sav",
        ]
        assert summary.entries[0].size == len(PLAYER_DATA)

        in_memory = handler.describe(Me1SaveGame.from_bytes(make_save()))
        assert [e.name for e in in_memory.entries] == ["player.sav", "state.sav"]
        assert not in_memory.has_world_save_package
    print("  PASS: test_describe_file")


def test_extract_entries():
    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        data = make_save_with_world()
        path = _write(os.path.join(tmpdir, "a.MassEffectSave"), data)
        out_dir = os.path.join(tmpdir, "dump")

        written = handler.extract_entries(path, out_dir)
        assert [os.path.basename(p) for p in written] == [
            "header.bin",
            "player.sav",
            "state.sav",
            "WorldSavePackage.sav",
        ]
        assert _read(written[0]) == data[:32]
        assert _read(written[1]) == PLAYER_DATA
        assert _read(written[3]) == WORLD_DATA

        game = Me1SaveGame.from_bytes(data)
        assert header_bytes(game) == data[:32]

        # Default destination comes from settings
        written = handler.extract_entries(path)
        assert os.path.dirname(written[0]) == os.path.join(handler.settings.extract_dir, "a")
    print("  PASS: test_extract_entries")


def test_extract_skips_directory_entries():
    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        data = make_save([
            ("player.sav", PLAYER_DATA),
            ("state.sav", STATE_DATA),
            ("sub/", b""),
        ])
        path = _write(os.path.join(tmpdir, "a.MassEffectSave"), data)
        written = handler.extract_entries(path, os.path.join(tmpdir, "out"))
        assert [os.path.basename(p) for p in written] == ["header.bin", "player.sav", "state.sav"]
    print("  PASS: test_extract_skips_directory_entries")


def test_extract_keeps_header_dump():
    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        data = make_save([
            ("player.sav", PLAYER_DATA),
            ("state.sav", STATE_DATA),
            ("header.bin", b"entry named like the dump"),
        ])
        path = _write(os.path.join(tmpdir, "a.MassEffectSave"), data)
        written = handler.extract_entries(path, os.path.join(tmpdir, "out"))
        assert [os.path.basename(p) for p in written] == [
            "header.bin",
            "player.sav",
            "state.sav",
            "header_2.bin",
        ]
        assert _read(written[0]) == data[:32]
        assert _read(written[3]) == b"entry named like the dump"
    print("  PASS: test_extract_keeps_header_dump")


def test_extract_same_basename_in_folders():
    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        data = make_save([
            ("player.sav", PLAYER_DATA),
            ("state.sav", STATE_DATA),
            ("a/data.bin", b"first"),
            ("b/data.bin", b"second"),
        ])
        path = _write(os.path.join(tmpdir, "a.MassEffectSave"), data)
        written = handler.extract_entries(path, os.path.join(tmpdir, "out"))
        assert [os.path.basename(p) for p in written[3:]] == ["data.bin", "data_2.bin"]
        assert _read(written[3]) == b"first"
        assert _read(written[4]) == b"second"
    print("  PASS: test_extract_same_basename_in_folders")


def test_find_saves():

    with tempfile.TemporaryDirectory() as tmpdir:
        handler = _handler(tmpdir)
        os.makedirs(os.path.join(tmpdir, "Shepard", "Career"))
        a = _write(os.path.join(tmpdir, "Shepard", "Career", "b.MassEffectSave"), b"")
        b = _write(os.path.join(tmpdir, "a.MassEffectSave"), b"")
        _write(os.path.join(tmpdir, "notes.txt"), b"")
        assert handler.find_saves() == sorted([a, b])
        assert handler.find_saves(os.path.join(tmpdir, "Shepard")) == [a]
    print("  PASS: test_find_saves")


# ---------------------------------------------------------------------------
# Settings / logging / formatting
# ---------------------------------------------------------------------------

def test_settings_defaults_and_unknown_keys():
    defaults = get_default_settings()
    assert defaults["backup_enabled"] is True
    assert defaults["backup_suffix"] == ".bak"
    assert defaults["extract_dir"].endswith("extracted")

    settings = Settings.from_dict({"log_timings": True, "enable_boxart": False})
    assert settings.log_timings is True
    assert not hasattr(settings, "enable_boxart")
    print("  PASS: test_settings_defaults_and_unknown_keys")


def test_settings_file_round_trip():
    with tempfile.TemporaryDirectory() as tmpdir:
        config_file = os.path.join(tmpdir, "conf", "config.json")
        loaded = load_settings(config_file)
        assert os.path.exists(config_file)
        assert loaded == get_default_settings()

        loaded["verify_after_write"] = False
        assert save_settings(loaded, config_file)
        assert load_settings(config_file)["verify_after_write"] is False

        with open(config_file, "w") as f:
            f.write("{not json")
        update_log_file_path(tmpdir)
        assert load_settings(config_file) == get_default_settings()
    print("  PASS: test_settings_file_round_trip")


def test_log_file_entries():
    with tempfile.TemporaryDirectory() as tmpdir:
        update_log_file_path(tmpdir)
        assert get_log_file() == os.path.join(tmpdir, "logs", "error.log")
        log_error("boom", "ValueError", "Traceback here")
        log_info("Serialize 1: 1.00 ms")
        with open(get_log_file()) as f:
            log = f.read()
        assert "ERROR: boom" in log
        assert "Type: ValueError" in log
        assert "INFO: Serialize 1: 1.00 ms" in log
    print("  PASS: test_log_file_entries")


def test_formatting_helpers():
    assert format_size(512) == "512.0 B"
    assert format_size(2048) == "2.0 KB"
    assert format_hex(b"\x01\x02\x03", limit=2) == "01 02 ..."
    assert format_hex(b"\xff") == "ff"
    assert truncate_text("abcdefgh", 6) == "abc..."
    print("  PASS: test_formatting_helpers")


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def _cli(tmpdir, *argv):
    config_file = os.path.join(tmpdir, "config.json")
    if not os.path.exists(config_file):
        with open(config_file, "w") as f:
            json.dump({"work_dir": tmpdir, "saves_dir": tmpdir}, f)
    return app.run(["--config", config_file, *argv])


def test_cli_commands():
    with tempfile.TemporaryDirectory() as tmpdir:
        path = _write(os.path.join(tmpdir, "a.MassEffectSave"), make_save_with_world())
        assert _cli(tmpdir, "info", path) == 0
        assert _cli(tmpdir, "verify", path) == 0
        assert _cli(tmpdir, "extract", path, "-o", os.path.join(tmpdir, "dump")) == 0
        assert os.path.exists(os.path.join(tmpdir, "dump", "WorldSavePackage.sav"))
        assert _cli(tmpdir, "list") == 0

        out = os.path.join(tmpdir, "rewritten.MassEffectSave")
        assert _cli(tmpdir, "rewrite", path, "-o", out) == 0
        assert _read(out) == Me1SaveGame.from_bytes(_read(path)).to_bytes()
    print("  PASS: test_cli_commands")


def test_cli_failures():
    with tempfile.TemporaryDirectory() as tmpdir:
        bad = _write(os.path.join(tmpdir, "bad.MassEffectSave"), make_save(archive=b"junk"))
        good = _write(os.path.join(tmpdir, "good.MassEffectSave"), make_save())
        assert _cli(tmpdir, "verify", good, bad) == 1
        assert _cli(tmpdir, "info", bad) == 1
        assert _cli(tmpdir, "info", os.path.join(tmpdir, "missing.MassEffectSave")) == 1
        _expect(CorruptArchive, SaveHandler().load, bad)

        encrypted = _write(
            os.path.join(tmpdir, "locked.MassEffectSave"),
            make_save(archive=mark_encrypted(make_archive([
                ("player.sav", PLAYER_DATA),
                ("state.sav", STATE_DATA),
            ]))),
        )
        assert _cli(tmpdir, "info", encrypted) == 1
    print("  PASS: test_cli_failures")


if __name__ == "__main__":
    import sys

    tests = [obj for name, obj in sorted(globals().items()) if name.startswith("test_")]
    failed = 0
    for test in tests:
        try:
            test()
        except Exception as e:
            failed += 1
            print(f"  FAIL: {test.__name__}: {e}")
    print(f"\nResults: {len(tests) - failed} passed, {failed} failed out of {len(tests)} tests")
    sys.exit(1 if failed else 0)
