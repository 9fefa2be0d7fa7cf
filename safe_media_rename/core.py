"""
Core functionality for planning and performing media file renames.
"""

import logging
import time
from datetime import date
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .collision import CollisionResolver, NameState
from .config import RenameConfig
from .metadata import MetadataQuery, create_metadata_query
from .models import (
    FileOutcome,
    MediaFile,
    RenameFailure,
    RenameResult,
    RunCounters,
)
from .naming import (
    DATE_FORMAT,
    InvalidFilenameError,
    NameGenerator,
    is_canonical,
    new_uuid,
    validate_filename,
)

logger = logging.getLogger(__name__)

__all__ = ["InvalidFilenameError", "MediaRenamer", "RenameError", "validate_filename"]


class RenameError(RenameFailure):
    """The filesystem rename could not be carried out."""


class MediaRenamer:
    """
    Rename media files to canonical capture-time names.

    Features:
    - Names files after the first usable metadata timestamp
    - Falls back to the run date plus a random UUID
    - Never overwrites: taken names get a numeric suffix
    - Skips files that already carry a canonical name
    - Dry-run mode reports every rename without touching the disk
    """

    def __init__(self, config: Optional[RenameConfig] = None,
                 metadata_query: Optional[MetadataQuery] = None,
                 today: Optional[date] = None,
                 uuid_factory: Callable[[], str] = new_uuid):
        """
        Initialize the MediaRenamer.

        Args:
            config: Run settings, defaults to RenameConfig()
            metadata_query: Metadata backend; built from config when omitted
            today: Run date for fallback names, defaults to the current date
            uuid_factory: Source of random identifiers for fallback names
        """
        self.config = config or RenameConfig()
        self.dry_run = self.config.dry_run

        if metadata_query is None:
            metadata_query = create_metadata_query(self.config)
        elif not self.config.use_metadata:
            metadata_query = None

        self.generator = NameGenerator(
            metadata_query=metadata_query,
            fields=self.config.metadata_fields,
            today=today,
            uuid_attempts=self.config.uuid_attempts,
            uuid_factory=uuid_factory,
        )
        self.resolver = CollisionResolver(max_suffix=self.config.max_suffix)
        self.counters = RunCounters()
        self.elapsed = 0.0
        self._states = {}  # type: Dict[Path, NameState]

    def name_state(self, directory: Path) -> NameState:
        """Return the run-wide NameState for ``directory``."""
        key = directory.resolve()
        state = self._states.get(key)
        if state is None:
            state = self._states[key] = NameState(directory)
        return state

    def process_files(self, filepaths: Iterable[Path]) -> List[RenameResult]:
        """Process all files one after another and log a summary."""
        start = time.monotonic()
        filepaths = [Path(p) for p in filepaths]

        logger.info("Processing %d files (run date: %s)",
                    len(filepaths), self.generator.today.strftime(DATE_FORMAT))
        if self.dry_run:
            logger.warning("Dry run: no files will be renamed")
        self._announce_metadata()

        results = []
        for filepath in filepaths:
            result = self.process_file(filepath)
            self.counters.record(result)
            results.append(result)

        self.elapsed = time.monotonic() - start
        self.log_summary()
        return results

    def process_file(self, filepath: Path) -> RenameResult:
        """Carry one file through skip check, naming, resolution and rename."""
        media = MediaFile(Path(filepath))
        logger.debug("Processing: %s", media.path)

        if is_canonical(media.name):
            logger.info("Already in canonical form, skipping: %s", media.name)
            return RenameResult(media.path, None, FileOutcome.SKIPPED,
                                message="already canonical")

        state = self.name_state(media.directory)
        origin = None
        try:
            candidate = self.generator.generate(media, state.is_taken)
            origin = candidate.origin
            final_name = self.resolver.resolve(candidate.name, state.is_taken)

            if final_name == media.name:
                logger.info("Name unchanged, skipping: %s", media.name)
                return RenameResult(media.path, None, FileOutcome.SKIPPED, origin,
                                    message="name unchanged")

            validate_filename(final_name)
            target = media.directory / final_name
            self._execute(media, target, state)
        except RenameFailure as e:
            logger.error("%s: %s", media.name, e)
            return RenameResult(media.path, None, FileOutcome.ERRORED, origin, str(e))

        state.reserve(final_name)
        logger.debug("Name source: %s", origin.value)
        return RenameResult(media.path, target, FileOutcome.SUCCEEDED, origin)

    def _execute(self, media: MediaFile, target: Path, state: NameState) -> None:
        if not media.path.exists() and not media.path.is_symlink():
            raise RenameError("source file not found")

        # The directory may have changed since the name was resolved
        if state.is_taken(target.name):
            raise RenameError(f"target already exists: {target.name}")

        if self.dry_run:
            logger.info("[DRY-RUN] Would rename: %s -> %s", media.name, target.name)
            return

        try:
            media.path.rename(target)
        except FileNotFoundError as e:
            raise RenameError(f"source file disappeared: {e}") from e
        except FileExistsError as e:
            raise RenameError(f"target already exists: {target.name}") from e
        except PermissionError as e:
            raise RenameError(f"permission denied: {e}") from e
        except OSError as e:
            raise RenameError(f"rename failed: {e}") from e

        logger.info("Renamed: %s -> %s", media.name, target.name)

    def _announce_metadata(self) -> None:
        query = self.generator.metadata_query
        if query is None:
            logger.info("Metadata lookup disabled, using run date + UUID names")
        elif not query.is_available():
            logger.warning("exiftool is not installed, capture dates cannot be read")
            logger.info("Install it with:")
            logger.info("  Ubuntu/Debian: sudo apt-get install exiftool")
            logger.info("  macOS: brew install exiftool")
            logger.info("Using run date + UUID names")
        else:
            logger.info("Reading capture dates with %s", query.name)

    def log_summary(self) -> None:
        counters = self.counters
        logger.info("Summary:")
        logger.info("  Succeeded: %d files", counters.succeeded)
        if counters.metadata_used:
            logger.info("    - from metadata: %d files", counters.metadata_used)
        if counters.fallback_used:
            logger.info("    - from date + UUID: %d files", counters.fallback_used)
        logger.info("  Skipped: %d files", counters.skipped)
        if counters.errored:
            logger.warning("  Errored: %d files", counters.errored)
        logger.info("  Elapsed: %.1fs", self.elapsed)
        if self.dry_run:
            logger.info("Dry run completed, no files were renamed")
