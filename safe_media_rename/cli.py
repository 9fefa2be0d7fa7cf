#!/usr/bin/env python3
"""
Command-line interface for safe_media_rename.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import __version__
from .config import (
    BACKEND_EXIFTOOL,
    MAX_SUFFIX,
    METADATA_BACKENDS,
    METADATA_TIMEOUT,
    UUID_ATTEMPTS,
    RenameConfig,
)
from .core import MediaRenamer
from .log import setup_logging

logger = logging.getLogger("safe_media_rename.cli")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EXIT_ERROR, f"{self.prog}: error: {message}\n")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {value}")
    return number


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="safe_media_rename",
        description="Safely rename media files after their capture date",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Naming:
  With a capture date in the metadata:  YYYY-MM-DD_HHMMSS.ext
  Without one:                          YYYY-MM-DD_UUID.ext (today's date)

Examples:
  safe_media_rename -r -e mp4                 # rename *.mp4
  safe_media_rename -r -e mp4 -e mkv          # rename *.mp4 and *.mkv
  safe_media_rename -r -f video1.mp4          # rename a single file
  safe_media_rename -n -e mp4 -e mkv          # dry run, show planned renames
  safe_media_rename -rv -e mp4                # rename with verbose logging

Supported extensions, for example:
  Video: mp4, mkv, avi, mov, wmv, flv, m4v, webm, mpg, mpeg, 3gp
  Image: jpg, jpeg, png, gif, bmp, tiff, webp, heic, raw, cr2, nef
  Audio: mp3, wav, flac, aac, m4a, ogg, wma

Notes:
- Files are never deleted
- Duplicate names are avoided with a -N counter
- Files already in the canonical form are skipped
- Capture dates are read with exiftool when it is installed
        """
    )

    parser.add_argument('-r', '--run', action='store_true',
                        help='Rename files (the default once targets are given)')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Show detailed progress, including every metadata field tried')
    parser.add_argument('-n', '--dry-run', action='store_true',
                        help='Show what would be renamed without renaming anything')

    targets = parser.add_argument_group('target files (at least one required)')
    targets.add_argument('-e', '--extension', dest='extensions', action='append',
                         default=[], metavar='EXT',
                         help='Process files with this extension (repeatable)')
    targets.add_argument('-f', '--file', dest='files', action='append',
                         default=[], metavar='FILE',
                         help='Process this file (repeatable)')
    targets.add_argument('-C', '--directory', default='.', metavar='DIR',
                         help='Directory searched for --extension matches (default: current)')

    metadata = parser.add_argument_group('metadata')
    metadata.add_argument('--no-metadata', dest='use_metadata', action='store_false',
                          help='Skip metadata lookup and always use date + UUID names')
    metadata.add_argument('--metadata-backend', choices=METADATA_BACKENDS,
                          default=BACKEND_EXIFTOOL,
                          help='Where capture dates are read from (default: %(default)s)')
    metadata.add_argument('--timeout', type=_positive_float, default=METADATA_TIMEOUT,
                          metavar='SECONDS',
                          help='Time limit per exiftool call (default: %(default)s)')

    limits = parser.add_argument_group('limits')
    limits.add_argument('--max-suffix', type=_positive_int, default=MAX_SUFFIX, metavar='N',
                        help='Highest -N counter tried on name collisions (default: %(default)s)')
    limits.add_argument('--uuid-attempts', type=_positive_int, default=UUID_ATTEMPTS,
                        metavar='N',
                        help='Identifiers tried for a fallback name (default: %(default)s)')

    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def _strip_dot(extension: str) -> str:
    return extension[1:] if extension.startswith('.') else extension


def collect_targets(files: Sequence[str], extensions: Sequence[str],
                    directory: Path) -> List[Path]:
    """
    Build the ordered, duplicate-free list of files to process.

    Explicit files come first, then extension matches in sorted order. Hidden
    files are not picked up by extension matching.
    """
    found = []  # type: List[Path]

    if files:
        logger.debug("Adding files given on the command line...")
    for file_arg in files:
        filepath = Path(file_arg)
        if filepath.is_file():
            found.append(filepath)
            logger.debug("Added: %s", filepath)
        else:
            logger.warning("File not found: %s", file_arg)

    for extension in extensions:
        extension = _strip_dot(extension)
        if not extension:
            continue
        logger.debug("Searching for *.%s in %s", extension, directory)
        for filepath in sorted(directory.glob(f"*.{extension}")):
            if filepath.name.startswith('.') or not filepath.is_file():
                continue
            found.append(filepath)
            logger.debug("Added: %s", filepath)

    unique = []
    seen = set()
    for filepath in found:
        key = filepath.resolve()
        if key in seen:
            continue
        seen.add(key)
        unique.append(filepath)
    return unique


def _raise_interrupt(signum, frame):
    raise KeyboardInterrupt


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Run the tool and return the process exit code."""
    argv = sys.argv[1:] if argv is None else list(argv)
    parser = build_parser()

    if not argv:
        parser.print_help()
        return EXIT_OK

    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    setup_logging(args.verbose)

    if not args.extensions and not args.files:
        logger.error("Either --extension or --file is required")
        parser.print_usage(sys.stderr)
        return EXIT_ERROR

    directory = Path(args.directory)
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return EXIT_ERROR

    config = RenameConfig(
        dry_run=args.dry_run,
        verbose=args.verbose,
        use_metadata=args.use_metadata,
        metadata_backend=args.metadata_backend,
        metadata_timeout=args.timeout,
        max_suffix=args.max_suffix,
        uuid_attempts=args.uuid_attempts,
    )

    previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        logger.info("Starting media rename")
        targets = collect_targets(args.files, args.extensions, directory)

        if not targets:
            logger.warning("No target files found")
            if args.extensions:
                logger.info("Extensions: %s", " ".join(args.extensions))
            return EXIT_OK

        logger.info("Target files: %d", len(targets))
        if args.extensions:
            logger.info("Extensions: %s", " ".join(args.extensions))
        else:
            logger.info("Files: %s", " ".join(args.files))

        renamer = MediaRenamer(config)
        renamer.process_files(targets)
    except KeyboardInterrupt:
        logger.warning("Interrupted, stopping")
        return EXIT_INTERRUPTED
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)

    return EXIT_ERROR if renamer.counters.errored else EXIT_OK


def main():
    """Main entry point for the safe_media_rename command."""
    sys.exit(run())


if __name__ == '__main__':
    main()
