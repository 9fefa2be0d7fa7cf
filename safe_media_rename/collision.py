"""Collision-free name selection within a directory."""

import logging
from pathlib import Path
from typing import Callable, Set

from .config import MAX_SUFFIX
from .models import RenameFailure
from .naming import InvalidFilenameError, join_name, split_name, validate_filename

logger = logging.getLogger(__name__)


class CollisionExhausted(RenameFailure):
    """Every numbered variant of a name up to the ceiling is taken."""


class NameState:
    """
    Names that are unavailable in one directory.

    A name is taken when something with that name exists on disk (dangling
    symlinks included) or when an earlier file of the same run has reserved it.
    Reservations matter in dry-run mode, where nothing reaches the disk.

    Names are validated before the disk is consulted, so an unusable name
    surfaces as InvalidFilenameError rather than an OS error.
    """

    def __init__(self, directory: Path):
        self.directory = directory
        self._reserved = set()  # type: Set[str]

    def on_disk(self, name: str) -> bool:
        path = self.directory / name
        try:
            return path.exists() or path.is_symlink()
        except OSError as e:
            raise InvalidFilenameError(f"cannot check {name}: {e}") from e

    def is_taken(self, name: str) -> bool:
        validate_filename(name)
        return name in self._reserved or self.on_disk(name)

    __contains__ = is_taken

    def reserve(self, name: str) -> None:
        self._reserved.add(name)

    @property
    def reserved(self) -> Set[str]:
        return set(self._reserved)


class CollisionResolver:
    """Append ``-1``, ``-2``, ... to a name until it is free."""

    def __init__(self, max_suffix: int = MAX_SUFFIX):
        self.max_suffix = max_suffix

    def resolve(self, base_name: str, is_taken: Callable[[str], bool]) -> str:
        if not is_taken(base_name):
            return base_name

        logger.debug("Name already taken, adding a counter: %s", base_name)
        stem, extension = split_name(base_name)

        for counter in range(1, self.max_suffix + 1):
            candidate = join_name(f"{stem}-{counter}", extension)
            if not is_taken(candidate):
                logger.debug("Resolved collision: %s", candidate)
                return candidate

        raise CollisionExhausted(
            f"no free name for {base_name} (tried up to -{self.max_suffix})")
