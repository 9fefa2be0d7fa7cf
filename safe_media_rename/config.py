"""
Default settings for a rename run.

The field order below is the metadata priority: the first field that yields a
usable timestamp wins and the remaining fields are not consulted.
"""
from dataclasses import dataclass, field
from typing import Tuple

METADATA_FIELDS = ("CreateDate", "DateTimeOriginal", "MediaCreateDate", "ModifyDate")

BACKEND_EXIFTOOL = "exiftool"
BACKEND_EMBEDDED = "embedded"
METADATA_BACKENDS = (BACKEND_EXIFTOOL, BACKEND_EMBEDDED)

# Seconds allowed for a single exiftool call
METADATA_TIMEOUT = 10
# Highest numeric suffix tried when a name is taken
MAX_SUFFIX = 999
UUID_ATTEMPTS = 10
MAX_FILENAME_LENGTH = 255


@dataclass
class RenameConfig:
    """Settings for one run of the renamer."""
    dry_run: bool = False
    verbose: bool = False
    use_metadata: bool = True
    metadata_backend: str = BACKEND_EXIFTOOL
    metadata_fields: Tuple[str, ...] = field(default=METADATA_FIELDS)
    metadata_timeout: float = METADATA_TIMEOUT
    max_suffix: int = MAX_SUFFIX
    uuid_attempts: int = UUID_ATTEMPTS
