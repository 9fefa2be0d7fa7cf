"""
Capture timestamp lookup for media files.

Each backend answers one question: given a file and a metadata field name,
what is the timestamp in ``YYYY-MM-DD_HHMMSS`` form? Any failure (missing tool,
timeout, crash, unparsable output) is reported as ``None`` so that callers can
move on to the next field.
"""

import logging
import shutil
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

import exifread
from PIL import Image, UnidentifiedImageError
from PIL.ExifTags import TAGS

from .config import BACKEND_EMBEDDED, BACKEND_EXIFTOOL, METADATA_TIMEOUT, RenameConfig
from .naming import TIMESTAMP_FORMAT, TIMESTAMP_RE

logger = logging.getLogger(__name__)

EXIF_DATE_FORMAT = "%Y:%m:%d %H:%M:%S"
EXIF_IFD_POINTER = 0x8769

# exiftool field name -> EXIF tag name
EXIF_TAG_FOR_FIELD = {
    "CreateDate": "DateTimeDigitized",
    "DateTimeOriginal": "DateTimeOriginal",
    "ModifyDate": "DateTime",
}


class MetadataQuery:
    """Interface shared by the metadata backends."""

    name = "none"

    def is_available(self) -> bool:
        raise NotImplementedError

    def query(self, filepath: Path, field: str) -> Optional[str]:
        raise NotImplementedError


class ExiftoolQuery(MetadataQuery):
    """
    Query timestamps by running exiftool once per file and field.

    exiftool does the date formatting itself (``-d``), so the output only has to
    be checked against the timestamp pattern.
    """

    name = "exiftool"

    def __init__(self, binary: str = "exiftool", timeout: float = METADATA_TIMEOUT):
        self.binary = binary
        self.timeout = timeout
        self._available = None  # type: Optional[bool]

    def is_available(self) -> bool:
        if self._available is None:
            self._available = shutil.which(self.binary) is not None
        return self._available

    def query(self, filepath: Path, field: str) -> Optional[str]:
        cmd = [self.binary, f"-{field}", "-d", TIMESTAMP_FORMAT, "-s3", str(filepath)]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            logger.debug("exiftool timed out after %ss reading %s from %s",
                         self.timeout, field, filepath.name)
            return None
        except OSError as e:
            logger.debug("exiftool could not be run for %s: %s", filepath.name, e)
            return None

        if result.returncode != 0:
            logger.debug("exiftool exited with %d for %s (%s)",
                         result.returncode, filepath.name, result.stderr.strip())
            return None

        value = result.stdout.strip()
        if value and TIMESTAMP_RE.fullmatch(value):
            return value
        return None


class EmbeddedExifQuery(MetadataQuery):
    """
    Read EXIF date tags in-process with Pillow, falling back to exifread.

    Only still-image EXIF is understood; ``MediaCreateDate`` lives in QuickTime
    atoms and is always reported as absent here.
    """

    name = "embedded"

    def __init__(self):
        self._cache = {}  # type: Dict[Path, Dict[str, str]]

    def is_available(self) -> bool:
        return True

    def query(self, filepath: Path, field: str) -> Optional[str]:
        tag = EXIF_TAG_FOR_FIELD.get(field)
        if tag is None:
            return None

        tags = self._cache.get(filepath)
        if tags is None:
            tags = self._read_tags(filepath)
            self._cache[filepath] = tags

        value = tags.get(tag)
        if value is None:
            return None
        return normalize_exif_date(value)

    def _read_tags(self, filepath: Path) -> Dict[str, str]:
        tags = {}  # type: Dict[str, str]

        # Try PIL first, it covers the common JPEG/PNG/TIFF cases
        try:
            with Image.open(filepath) as img:
                exif = img.getexif()
                for tag_id, value in exif.items():
                    tags[TAGS.get(tag_id, str(tag_id))] = str(value)
                for tag_id, value in exif.get_ifd(EXIF_IFD_POINTER).items():
                    tags[TAGS.get(tag_id, str(tag_id))] = str(value)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.debug("Pillow could not read EXIF from %s: %s", filepath.name, e)

        if all(tag in tags for tag in EXIF_TAG_FOR_FIELD.values()):
            return tags

        # Fallback to exifread for raw formats and anything PIL missed
        try:
            with open(filepath, "rb") as f:
                raw_tags = exifread.process_file(f, details=False)
        except Exception as e:
            # exifread raises a variety of parser errors on corrupt input
            logger.debug("exifread could not read %s: %s", filepath.name, e)
            return tags

        for key, value in raw_tags.items():
            if " " not in key:
                continue
            tags.setdefault(key.split(" ", 1)[1], str(value))
        return tags


def normalize_exif_date(value: str) -> Optional[str]:
    """Convert an EXIF ``YYYY:MM:DD HH:MM:SS`` value to ``YYYY-MM-DD_HHMMSS``."""
    value = value.strip().rstrip("\x00")
    try:
        parsed = datetime.strptime(value[:19], EXIF_DATE_FORMAT)
    except ValueError:
        return None
    return parsed.strftime(TIMESTAMP_FORMAT)


def create_metadata_query(config: RenameConfig) -> Optional[MetadataQuery]:
    """Build the metadata backend selected by ``config``, or None when disabled."""
    if not config.use_metadata:
        return None
    if config.metadata_backend == BACKEND_EMBEDDED:
        return EmbeddedExifQuery()
    if config.metadata_backend == BACKEND_EXIFTOOL:
        return ExiftoolQuery(timeout=config.metadata_timeout)
    raise ValueError(f"Unknown metadata backend: {config.metadata_backend}")
