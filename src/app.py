"""Command line entry point for ME1 Save Utilities."""

import argparse
import os
import sys
import traceback
from typing import List, Optional

from config.settings import Settings, load_settings
from constants import APP_VERSION
from services.me1_save import SaveDataError, SaveHandler
from utils.formatting import format_size, truncate_text
from utils.logging import init_log_file, log_error, update_log_file_path


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="me1-save",
        description="Mass Effect 1 save container tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  me1-save info Clare00_AutoSave.MassEffectSave
  me1-save verify Save/*.MassEffectSave
  me1-save rewrite Clare00_AutoSave.MassEffectSave -o rewritten.MassEffectSave
  me1-save extract Clare00_AutoSave.MassEffectSave -o dump/
""",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    parser.add_argument("--config", help="Path to config.json (default: user data dir)")
    parser.add_argument("--timings", action="store_true", help="Log decode/encode timings")

    sub = parser.add_subparsers(dest="command")

    info = sub.add_parser("info", help="Show header fields and archive entries")
    info.add_argument("savefile")

    verify = sub.add_parser("verify", help="Check that re-encoding is stable")
    verify.add_argument("savefiles", nargs="+")

    rewrite = sub.add_parser("rewrite", help="Decode and re-encode a save")
    rewrite.add_argument("savefile")
    rewrite.add_argument("--output", "-o", help="Output path (default: overwrite input)")
    rewrite.add_argument("--no-backup", action="store_true", help="Do not keep a .bak copy")

    extract = sub.add_parser("extract", help="Dump header and archive entries to a directory")
    extract.add_argument("savefile")
    extract.add_argument("--output-dir", "-o", default=None)

    listing = sub.add_parser("list", help="List save files in a directory")
    listing.add_argument("directory", nargs="?", default=None)

    return parser


def _cmd_info(handler: SaveHandler, args) -> int:
    summary = handler.describe_file(args.savefile)
    print(f"File:             {summary.path} ({format_size(summary.file_size)})")
    print(f"Leading marker:   {summary.begin_hex}")
    print(f"Archive offset:   {summary.zip_offset} (0x{summary.zip_offset:x})")
    print(f"Pre-archive data: {summary.no_mans_land_size} bytes")
    print("Entries:")
    for entry in summary.entries:
        print(
            f"  {entry.name:<24} {format_size(entry.size):>10}"
            f"  (stored {format_size(entry.compressed_size)})"
        )
    return 0


def _cmd_verify(handler: SaveHandler, args) -> int:
    failed = 0
    for path in args.savefiles:
        name = truncate_text(os.path.basename(path), 48)
        try:
            report = handler.verify_file(path)
        except (SaveDataError, OSError) as e:
            failed += 1
            print(f"  FAIL: {name}: {e}")
            continue
        note = "identical to original" if report.identical_to_original else "archive recompressed"
        print(f"  PASS: {name} ({format_size(report.first_size)}, {note})")
    print(f"Results: {len(args.savefiles) - failed} passed, {failed} failed")
    return 1 if failed else 0


def _cmd_rewrite(handler: SaveHandler, args) -> int:
    if args.no_backup:
        handler.settings.backup_enabled = False
    game = handler.load(args.savefile)
    output = args.output or args.savefile
    backup = handler.save(game, output)
    print(f"Wrote {output}")
    if backup:
        print(f"Backup: {backup}")
    return 0


def _cmd_extract(handler: SaveHandler, args) -> int:
    for path in handler.extract_entries(args.savefile, args.output_dir):
        print(path)
    return 0


def _cmd_list(handler: SaveHandler, args) -> int:
    saves = handler.find_saves(args.directory)
    for path in saves:
        print(f"{format_size(os.path.getsize(path)):>10}  {path}")
    if not saves:
        print("No saves found")
    return 0


_COMMANDS = {
    "info": _cmd_info,
    "verify": _cmd_verify,
    "rewrite": _cmd_rewrite,
    "extract": _cmd_extract,
    "list": _cmd_list,
}


def run(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    settings = Settings.from_dict(load_settings(args.config))
    if args.timings:
        settings.log_timings = True
    update_log_file_path(settings.work_dir)
    init_log_file()

    handler = SaveHandler(settings)
    try:
        return _COMMANDS[args.command](handler, args)
    except (SaveDataError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main():
    """Entry point for the application."""
    try:
        sys.exit(run())
    except Exception as e:
        log_error(f"Application error: {e}", type(e).__name__, traceback.format_exc())
        raise


if __name__ == "__main__":
    main()
