import pytest

from promptevo.corpus import ReferenceRecord
from promptevo.history.manager import VersionLedger


@pytest.fixture
def records():
    return [
        ReferenceRecord(
            title="Python code review",
            content="Review Python code for bugs and style",
            source="repo-a",
        ),
        ReferenceRecord(
            title="SQL helper",
            content="Write optimized SQL queries",
            source="repo-b",
        ),
        ReferenceRecord(
            title="Python debugging",
            content="Find bugs in Python programs",
            source="repo-c",
        ),
    ]


@pytest.fixture
def ledger(tmp_path):
    return VersionLedger(tmp_path / "versions.json")
