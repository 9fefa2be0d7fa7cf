"""
Safe Media Rename - rename media files after their capture date.

This package provides functionality to:
- Read capture timestamps from photo, video and audio metadata
- Fall back to today's date plus a random UUID when no timestamp is found
- Pick collision-free names so that no file is ever overwritten
- Skip files that already follow the naming scheme
"""

__version__ = "1.1.0"
__author__ = "Vibe Tools"
__email__ = "tools@vibe.dev"

from .core import MediaRenamer
from .models import FileOutcome, NameOrigin, RenameResult, RunCounters

__all__ = ["MediaRenamer", "FileOutcome", "NameOrigin", "RenameResult", "RunCounters"]
