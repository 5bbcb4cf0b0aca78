"""
End-to-end tests: dump file → events → records → batches → store
"""

import pytest
from ingestion.runner import DumpRunner
from models.base import EntityKind


@pytest.mark.asyncio
async def test_two_releases_loaded(session_factory, write_dump, releases_markup):
    """Entities, list fields and child rows all reach their tables"""
    path = write_dump("discogs_releases.xml.gz", releases_markup)
    runner = DumpRunner(session_factory, batch_size=10000)

    [result] = await runner.run([path])

    assert result["status"] == "success"
    assert result["entity_kind"] == "release"
    assert result["entities_parsed"] == 2
    assert result["rows_loaded"] == {"release": 2, "release_label": 1, "release_video": 1}

    session = session_factory.sessions[0]
    releases = session.rows("release")
    assert [(r["id"], r["status"], r["title"]) for r in releases] == [
        (1, "Accepted", "A"),
        (2, "Accepted", "B"),
    ]
    assert releases[0]["genres"] == []
    assert releases[1]["genres"] == ["Rock", "Pop"]
    assert session.rows("release_label") == [
        {"release_id": 1, "label_id": 5, "label": "L", "catno": "C1"}
    ]
    assert session.rows("release_video") == [
        {"release_id": 2, "duration": 60, "src": "u", "title": "T"}
    ]


@pytest.mark.asyncio
async def test_batches_follow_batch_size(session_factory, write_dump):
    markup = "<labels>" + "".join(
        f"<label><id>{n}</id><name>Label {n}</name></label>" for n in range(1, 11)
    ) + "</labels>"
    path = write_dump("discogs_labels.xml.gz", markup)
    runner = DumpRunner(session_factory, batch_size=4)

    [result] = await runner.run([path])

    assert result["status"] == "success"
    assert result["batches_committed"] == {"label": 3}
    sizes = [len(b) for b in session_factory.sessions[0].batches("label")]
    assert sizes == [4, 4, 2]


@pytest.mark.asyncio
async def test_kind_detected_per_file(session_factory, write_dump, labels_markup, masters_markup):
    label_path = write_dump("a.xml.gz", labels_markup)
    master_path = write_dump("b.xml", masters_markup, compress=False)
    runner = DumpRunner(session_factory)

    results = await runner.run([label_path, master_path])

    assert [r["entity_kind"] for r in results] == ["label", "master"]
    labels, masters = session_factory.sessions
    assert labels.rows("label")[0]["sublabels"] == ["Axis Sub", "Axis Two"]
    assert masters.rows("master_artist")[0]["master_id"] == 18500


@pytest.mark.asyncio
async def test_declared_kind_mismatch(session_factory, write_dump, labels_markup):
    path = write_dump("labels.xml.gz", labels_markup)
    runner = DumpRunner(session_factory)

    [result] = await runner.run([path], entity_kind=EntityKind.ARTIST)

    assert result["status"] == "failed"
    assert result["error"]["error_type"] == "UnknownEntityKind"
    assert session_factory.sessions[0].committed == []


@pytest.mark.asyncio
async def test_files_processed_concurrently(session_factory, write_dump, releases_markup, labels_markup):
    paths = [
        write_dump("r.xml.gz", releases_markup),
        write_dump("l.xml.gz", labels_markup),
    ]
    runner = DumpRunner(session_factory)

    results = await runner.run(paths, concurrency=2)

    assert [r["status"] for r in results] == ["success", "success"]
    assert [r["file"] for r in results] == [str(p) for p in paths]


@pytest.mark.asyncio
async def test_numeric_fields_nulled_not_fatal(session_factory, write_dump):
    markup = (
        '<releases><release id="1" status="Accepted">'
        '<videos><video src="u" duration="n/a"><title>T</title></video></videos>'
        '</release></releases>'
    )
    path = write_dump("r.xml.gz", markup)

    [result] = await DumpRunner(session_factory).run([path])

    assert result["status"] == "success"
    assert result["field_parse_failures"] == 1
    assert session_factory.sessions[0].rows("release_video")[0]["duration"] is None


@pytest.mark.asyncio
async def test_two_genres_and_label_then_no_genres(session_factory, write_dump):
    """First release: two genres and a label; second release: no genres"""
    markup = (
        '<releases>'
        '<release id="101" status="Accepted">'
        '<title>First</title>'
        '<genres><genre>Electronic</genre><genre>Jazz</genre></genres>'
        '<labels><label name="Tresor" catno="TRESOR 1" id="7"/></labels>'
        '</release>'
        '<release id="102" status="Accepted">'
        '<title>Second</title>'
        '</release>'
        '</releases>'
    )
    path = write_dump("discogs_releases.xml.gz", markup)

    [result] = await DumpRunner(session_factory).run([path])

    assert result["status"] == "success"
    session = session_factory.sessions[0]
    releases = session.rows("release")
    assert [r["id"] for r in releases] == [101, 102]
    assert releases[0]["genres"] == ["Electronic", "Jazz"]
    assert releases[1]["genres"] == []
    labels = session.rows("release_label")
    assert len(labels) == 1
    assert labels[0]["release_id"] == 101
    assert session.rows("release_video") == []


@pytest.mark.asyncio
async def test_exact_multiple_of_batch_size(session_factory, write_dump):
    markup = "<labels>" + "".join(
        f"<label><id>{n}</id></label>" for n in range(1, 7)
    ) + "</labels>"
    path = write_dump("discogs_labels.xml.gz", markup)

    [result] = await DumpRunner(session_factory, batch_size=3).run([path])

    assert result["status"] == "success"
    assert result["batches_committed"] == {"label": 2}
    assert [len(b) for b in session_factory.sessions[0].batches("label")] == [3, 3]


@pytest.mark.parametrize("batch_size", [0, -3])
def test_runner_rejects_non_positive_batch_size(session_factory, batch_size):
    with pytest.raises(ValueError):
        DumpRunner(session_factory, batch_size=batch_size)


@pytest.mark.asyncio
async def test_overflowing_number_nulled_not_rejected(session_factory, write_dump):
    markup = (
        '<releases>'
        '<release id="1"><master_id>99999999999</master_id></release>'
        '<release id="2"><master_id>5</master_id></release>'
        '</releases>'
    )
    path = write_dump("r.xml.gz", markup)

    [result] = await DumpRunner(session_factory).run([path])

    assert result["status"] == "success"
    assert result["field_parse_failures"] == 1
    rows = session_factory.sessions[0].rows("release")
    assert [r["master_id"] for r in rows] == [None, 5]
