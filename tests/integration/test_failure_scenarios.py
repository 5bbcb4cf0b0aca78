"""
Tests for failure scenarios and error handling
"""

import pytest
from unittest.mock import AsyncMock, patch
from ingestion.runner import DumpRunner
from core.exceptions import LoadFailure


TRUNCATED_RELEASES = (
    '<releases>'
    '<release id="1" status="Accepted"><title>A</title>'
    '<labels><label name="L" catno="C1" id="5"/></labels></release>'
    '<release id="2" status="Accepted"><title>B</title><gen'
)


@pytest.mark.asyncio
async def test_truncated_dump_keeps_completed_entities(session_factory, write_dump):
    """
    Test: dump ends mid-entity, completed entities are still loaded
    """
    path = write_dump("cut.xml.gz", TRUNCATED_RELEASES)

    [result] = await DumpRunner(session_factory).run([path])

    assert result["status"] == "failed"
    assert result["error"]["error_type"] == "TruncatedInput"
    assert result["entities_parsed"] == 1

    session = session_factory.sessions[0]
    assert [r["id"] for r in session.rows("release")] == [1]
    assert [r["release_id"] for r in session.rows("release_label")] == [1]


@pytest.mark.asyncio
async def test_malformed_dump(session_factory, write_dump):
    path = write_dump("bad.xml.gz", '<releases><release id="1"></labels></releases>')

    [result] = await DumpRunner(session_factory).run([path])

    assert result["status"] == "failed"
    assert result["error"]["error_type"] == "MalformedInput"


@pytest.mark.asyncio
async def test_rejected_batch_stops_file(session_factory, write_dump):
    """
    Test: the store rejects the second batch, the first stays committed
    """
    markup = "<labels>" + "".join(
        f"<label><id>{n}</id></label>" for n in range(1, 6)
    ) + "</labels>"
    path = write_dump("labels.xml.gz", markup)
    session_factory.fail_on = {"label": 2}

    [result] = await DumpRunner(session_factory, batch_size=2).run([path])

    assert result["status"] == "failed"
    assert result["error"]["error_type"] == "LoadFailure"
    assert result["error"]["context"]["table_name"] == "label"
    assert result["error"]["context"]["batch_index"] == 2

    session = session_factory.sessions[0]
    assert [r["id"] for r in session.rows("label")] == [1, 2]
    session.rollback.assert_called_once()


@pytest.mark.asyncio
async def test_load_failure_does_not_stop_other_files(session_factory, write_dump, labels_markup):
    first = write_dump("one.xml.gz", labels_markup)
    second = write_dump("two.xml.gz", labels_markup)

    with patch(
        "ingestion.loaders.postgres_loader.PostgresLoader.load_batch",
        new=AsyncMock(side_effect=[
            LoadFailure("Failed to insert batch into label", table_name="label", batch_index=1),
            1,
        ]),
    ):
        results = await DumpRunner(session_factory).run([first, second])

    assert [r["status"] for r in results] == ["failed", "success"]


@pytest.mark.asyncio
async def test_missing_file_reported(session_factory, write_dump, tmp_path, labels_markup):
    """
    Test: an unreadable file fails alone, the next file is still loaded
    """
    present = write_dump("labels.xml.gz", labels_markup)

    results = await DumpRunner(session_factory).run([tmp_path / "absent.xml.gz", present])

    assert results[0]["status"] == "failed"
    assert results[0]["error"]["error_type"] == "IOFailure"
    assert results[1]["status"] == "success"
    assert session_factory.sessions[1].rows("label")[0]["name"] == "Axis"


@pytest.mark.asyncio
async def test_abort_policy_fails_file(session_factory, write_dump):
    markup = (
        '<releases>'
        '<release id="1"><master_id>7</master_id></release>'
        '<release id="2"><master_id>x</master_id></release>'
        '</releases>'
    )
    path = write_dump("r.xml.gz", markup)

    [result] = await DumpRunner(session_factory, field_parse_policy="abort").run([path])

    assert result["status"] == "failed"
    assert result["error"]["error_type"] == "FieldParseFailure"
    assert [r["id"] for r in session_factory.sessions[0].rows("release")] == [1]
