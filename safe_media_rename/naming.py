"""
Canonical file names and how to produce them.

Two canonical shapes exist, both keeping the original extension verbatim:

* ``YYYY-MM-DD_HHMMSS[-N].ext`` for files with a usable capture timestamp
* ``YYYY-MM-DD_xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx.ext`` (run date plus a
  random UUID) for everything else
"""

import logging
import re
import unicodedata
import uuid
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from .config import MAX_FILENAME_LENGTH, METADATA_FIELDS, UUID_ATTEMPTS
from .models import CandidateName, MediaFile, NameOrigin, RenameFailure

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d_%H%M%S"
DATE_FORMAT = "%Y-%m-%d"

TIMESTAMP_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}_[0-9]{6}")
UUID_RE = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}")

CANONICAL_TIMESTAMP_STEM_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}_[0-9]{6}(-[1-9][0-9]*)?")
CANONICAL_UUID_STEM_RE = re.compile(
    r"[0-9]{4}-[0-9]{2}-[0-9]{2}_"
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"
)

FORBIDDEN_CHARACTERS = '/\\:*?"<>|'


class NameGenerationError(RenameFailure):
    """No well-formed unique fallback name could be produced."""


class InvalidFilenameError(RenameFailure):
    """A generated name is not safe to use as a file name."""


def validate_filename(name: str) -> None:
    """Raise InvalidFilenameError unless ``name`` is a safe, plain file name."""
    if not name:
        raise InvalidFilenameError("empty file name")
    if any(unicodedata.category(char) == "Cc" for char in name):
        raise InvalidFilenameError(f"control character in file name: {name!r}")
    bad = sorted(set(name) & set(FORBIDDEN_CHARACTERS))
    if bad:
        raise InvalidFilenameError(f"forbidden character(s) {''.join(bad)} in file name: {name}")
    if len(name) > MAX_FILENAME_LENGTH:
        raise InvalidFilenameError(
            f"file name longer than {MAX_FILENAME_LENGTH} characters ({len(name)})")


def split_name(filename: str) -> Tuple[str, str]:
    """Split a file name into (stem, extension) with the dot removed."""
    path = Path(filename)
    return path.stem, path.suffix[1:]


def join_name(stem: str, extension: str) -> str:
    return f"{stem}.{extension}" if extension else stem


def is_canonical(filename: str) -> bool:
    """Check whether a file name already follows one of the canonical shapes."""
    stem, _ = split_name(filename)
    return bool(CANONICAL_TIMESTAMP_STEM_RE.fullmatch(stem)
                or CANONICAL_UUID_STEM_RE.fullmatch(stem))


def new_uuid() -> str:
    """Random identifier in the canonical 8-4-4-4-12 lowercase layout."""
    return str(uuid.uuid4())


class NameGenerator:
    """
    Produce the canonical base name for a file.

    Args:
        metadata_query: Backend used to look up timestamps, or None to always
            use the fallback name
        fields: Metadata fields in priority order
        today: Run date used for fallback names
        uuid_attempts: How many identifiers to try before giving up
        uuid_factory: Source of random identifiers
    """

    def __init__(self, metadata_query=None, fields: Sequence[str] = METADATA_FIELDS,
                 today: Optional[date] = None, uuid_attempts: int = UUID_ATTEMPTS,
                 uuid_factory: Callable[[], str] = new_uuid):
        self.metadata_query = metadata_query
        self.fields = tuple(fields)
        self.today = today or date.today()
        self.uuid_attempts = uuid_attempts
        self.uuid_factory = uuid_factory

    @property
    def metadata_enabled(self) -> bool:
        return self.metadata_query is not None and self.metadata_query.is_available()

    def generate(self, media: MediaFile,
                 is_taken: Callable[[str], bool] = lambda name: False) -> CandidateName:
        """Return a metadata based name when possible, otherwise a fallback name."""
        if self.metadata_enabled:
            candidate = self.from_metadata(media)
            if candidate is not None:
                return candidate
        return self.fallback(media, is_taken)

    def from_metadata(self, media: MediaFile) -> Optional[CandidateName]:
        """Use the first field holding a well-formed timestamp."""
        logger.debug("Reading metadata: %s", media.name)

        for field in self.fields:
            logger.debug("Checking field %s", field)
            try:
                timestamp = self.metadata_query.query(media.path, field)
            except Exception as e:
                # A misbehaving backend only costs us this field
                logger.debug("Metadata query for %s failed: %s", field, e)
                continue

            if timestamp and TIMESTAMP_RE.fullmatch(timestamp):
                logger.debug("Found timestamp %s (field: %s)", timestamp, field)
                return CandidateName(join_name(timestamp, media.extension), NameOrigin.METADATA)

        logger.debug("No usable timestamp in metadata: %s", media.name)
        return None

    def fallback(self, media: MediaFile,
                 is_taken: Callable[[str], bool] = lambda name: False) -> CandidateName:
        """
        Build ``<run date>_<uuid>.<ext>``.

        A taken UUID name is retried with a new identifier, never suffixed:
        suffixed UUID names are not canonical.
        """
        logger.debug("Generating fallback name: %s", media.name)
        prefix = self.today.strftime(DATE_FORMAT)

        for attempt in range(1, self.uuid_attempts + 1):
            identifier = self.uuid_factory()
            if not identifier or not UUID_RE.fullmatch(identifier):
                logger.error("Malformed identifier generated (attempt %d/%d)",
                             attempt, self.uuid_attempts)
                continue

            candidate = join_name(f"{prefix}_{identifier}", media.extension)
            if not is_taken(candidate):
                return CandidateName(candidate, NameOrigin.FALLBACK_UNIQUE)

            logger.debug("Identifier already in use, retrying (%d/%d)",
                         attempt, self.uuid_attempts)

        raise NameGenerationError(
            f"could not generate a unique name after {self.uuid_attempts} attempts")
