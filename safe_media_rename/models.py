"""Data models for the renamer package."""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import NamedTuple, Optional


class RenameFailure(Exception):
    """Base class for conditions that stop a single file from being renamed."""


class NameOrigin(Enum):
    """Where a generated name came from."""
    METADATA = "metadata"
    FALLBACK_UNIQUE = "fallback"


class FileOutcome(Enum):
    """Final state of one file after a run."""
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    ERRORED = "errored"


class MediaFile(NamedTuple):
    """A file picked up by the current run."""
    path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        """Extension without the leading dot, verbatim ('' when there is none)."""
        return self.path.suffix[1:]

    @property
    def directory(self) -> Path:
        return self.path.parent


class CandidateName(NamedTuple):
    """A generated base name and the way it was produced."""
    name: str
    origin: NameOrigin


class RenameResult(NamedTuple):
    """Outcome of processing one file."""
    source: Path
    target: Optional[Path]
    outcome: FileOutcome
    origin: Optional[NameOrigin] = None
    message: Optional[str] = None


@dataclass
class RunCounters:
    """Tally of per-file outcomes for the summary."""
    succeeded: int = 0
    skipped: int = 0
    errored: int = 0
    metadata_used: int = 0
    fallback_used: int = 0

    def record(self, result: RenameResult) -> None:
        if result.outcome is FileOutcome.SUCCEEDED:
            self.succeeded += 1
            if result.origin is NameOrigin.METADATA:
                self.metadata_used += 1
            elif result.origin is NameOrigin.FALLBACK_UNIQUE:
                self.fallback_used += 1
        elif result.outcome is FileOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.errored += 1
