"""Shared fixtures for the test modules."""

from datetime import date
from pathlib import Path

import pytest

from safe_media_rename.metadata import MetadataQuery

RUN_DATE = date(2024, 3, 15)


class FakeQuery(MetadataQuery):
    """In-memory metadata backend keyed by file name, then field."""

    name = "fake"

    def __init__(self, values=None, available=True, fail_fields=()):
        self.values = values or {}
        self.available = available
        self.fail_fields = set(fail_fields)
        self.calls = []

    def is_available(self):
        return self.available

    def query(self, filepath: Path, field: str):
        self.calls.append((filepath.name, field))
        if field in self.fail_fields:
            raise RuntimeError("backend crashed")
        return self.values.get(filepath.name, {}).get(field)


def touch(directory: Path, *names):
    paths = []
    for name in names:
        path = directory / name
        path.write_bytes(b"data")
        paths.append(path)
    return paths


@pytest.fixture
def run_date():
    return RUN_DATE
