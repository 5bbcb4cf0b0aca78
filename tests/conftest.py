"""
Pytest configuration and fixtures
"""

import gzip
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest


class RecordingSession:
    """
    Stand-in for an AsyncSession that keeps committed batches in memory.

    Each ``execute`` call is one batch; it becomes visible in ``committed``
    only after ``commit``. ``fail_on`` makes the matching (table, ordinal)
    batch raise, the way the store rejects a constraint violation.
    """

    def __init__(self, fail_on: Optional[Dict[str, int]] = None):
        self.fail_on = fail_on or {}
        self.committed: List[Dict[str, Any]] = []
        self._pending: List[Dict[str, Any]] = []
        self._seen: Dict[str, int] = {}

        self.execute = AsyncMock(side_effect=self._execute)
        self.commit = AsyncMock(side_effect=self._commit)
        self.rollback = AsyncMock(side_effect=self._rollback)

    async def _execute(self, statement, rows=None):
        table = statement.table.name
        self._seen[table] = self._seen.get(table, 0) + 1
        if self.fail_on.get(table) == self._seen[table]:
            raise RuntimeError(f'duplicate key value violates unique constraint "{table}_pkey"')
        self._pending.append({"table": table, "rows": [dict(r) for r in rows or []]})

    async def _commit(self):
        self.committed.extend(self._pending)
        self._pending = []

    async def _rollback(self):
        self._pending = []

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return [row for batch in self.committed if batch["table"] == table for row in batch["rows"]]

    def batches(self, table: str) -> List[List[Dict[str, Any]]]:
        return [batch["rows"] for batch in self.committed if batch["table"] == table]


@pytest.fixture
def recording_session():
    return RecordingSession()


@pytest.fixture
def session_factory():
    """
    Session factory handing out one RecordingSession per file.

    The sessions are collected on ``factory.sessions`` in creation order.
    """
    sessions: List[RecordingSession] = []

    @asynccontextmanager
    async def factory():
        session = RecordingSession(fail_on=factory.fail_on)
        sessions.append(session)
        yield session

    factory.sessions = sessions
    factory.fail_on = {}
    return factory


@pytest.fixture
def write_dump(tmp_path):
    """Write markup to a dump file, gzip-compressed unless told otherwise"""

    def _write(name: str, markup: str, compress: bool = True) -> Path:
        path = tmp_path / name
        data = markup.encode("utf-8")
        if compress:
            with gzip.open(path, "wb") as fh:
                fh.write(data)
        else:
            path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def releases_markup():
    """Two releases, one with a label, one with a video and two genres"""
    return (
        '<releases>'
        '<release id="1" status="Accepted">'
        '<title>A</title>'
        '<labels><label name="L" catno="C1" id="5"/></labels>'
        '</release>'
        '<release id="2" status="Accepted">'
        '<title>B</title>'
        '<genres><genre>Rock</genre><genre>Pop</genre></genres>'
        '<videos><video src="u" duration="60"><title>T</title></video></videos>'
        '</release>'
        '</releases>'
    )


@pytest.fixture
def labels_markup():
    return (
        '<labels>'
        '<label>'
        '<id>43</id>'
        '<name>Axis</name>'
        '<contactinfo>info@axis.example</contactinfo>'
        '<profile>Detroit label</profile>'
        '<urls><url>http://axis.example</url></urls>'
        '<sublabels><label id="51">Axis Sub</label><label id="52">Axis Two</label></sublabels>'
        '<data_quality>Correct</data_quality>'
        '</label>'
        '</labels>'
    )


@pytest.fixture
def masters_markup():
    return (
        '<masters>'
        '<master id="18500">'
        '<main_release>155102</main_release>'
        '<artists>'
        '<artist><id>212070</id><name>Samuel L Session</name><anv/><join/><role/></artist>'
        '</artists>'
        '<genres><genre>Electronic</genre></genres>'
        '<styles><style>Techno</style></styles>'
        '<year>2001</year>'
        '<title>New Soil</title>'
        '<data_quality>Correct</data_quality>'
        '</master>'
        '</masters>'
    )
