"""Shared pytest fixtures for smileyQL unit and integration tests."""
from __future__ import annotations

import sqlite3
from collections.abc import Iterator

import pytest

from smileyql.compile.template import SmileyTemplate
from tests.fixtures import BIN_QUERY, BIN_ROWS, ITEM_ROWS, RecordingConnection, load_ddl


@pytest.fixture()
def recording_connection() -> RecordingConnection:
    return RecordingConnection()


@pytest.fixture(scope="session")
def bin_template() -> SmileyTemplate:
    """The inventory lookup with three optional criteria (ANSI)."""
    return SmileyTemplate(BIN_QUERY)


@pytest.fixture()
def db() -> Iterator[sqlite3.Connection]:
    """In-memory SQLite database holding the sample inventory."""
    conn = sqlite3.connect(":memory:")
    conn.executescript(load_ddl())
    conn.executemany("INSERT INTO bin_tbl VALUES (?, ?, ?, ?, ?, ?)", BIN_ROWS)
    conn.executemany("INSERT INTO item_tbl VALUES (?, ?, ?)", ITEM_ROWS)
    conn.commit()
    yield conn
    conn.close()
