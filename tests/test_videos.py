import uuid

import pytest
from sqlalchemy import event

from skillspark.exceptions import ForbiddenOwnership, InvalidArgument, NotFound
from skillspark.models import VideoPage
from skillspark.services import videos
from skillspark.services.accounts import create_account
from skillspark.services.roadmaps import upsert_roadmap
from skillspark.services.topics import create_topic
from skillspark.services.videos import (
    delete_level,
    latest_generation,
    latest_pages,
    list_generations,
    list_pages,
    next_generation,
    prune_generations,
    write_generation,
    write_page,
)


def _videos(prefix, n=5):
    return [{"videoId": f"{prefix}-{i}", "title": f"Video {i}"} for i in range(1, n + 1)]


def test_next_generation_starts_at_one_and_preserves_history(db, roadmap):
    assert next_generation(db, roadmap.id, "beginner") == 1
    assert latest_generation(db, roadmap.id, "beginner") == 0

    write_page(db, roadmap.id, "beginner", 1, 1, _videos("g1p1"))
    write_page(db, roadmap.id, "beginner", 2, 1, _videos("g1p2"))
    assert next_generation(db, roadmap.id, "beginner") == 2

    write_page(db, roadmap.id, "beginner", 1, 2, _videos("g2p1"))

    gen1 = list_pages(db, roadmap.id, "beginner", 1)
    gen2 = list_pages(db, roadmap.id, "beginner", 2)
    assert [p.page_number for p in gen1] == [1, 2]
    assert [p.video_data[0]["videoId"] for p in gen1] == ["g1p1-1", "g1p2-1"]
    assert [p.generation_number for p in gen2] == [2]
    assert gen2[0].video_data[0]["videoId"] == "g2p1-1"
    assert latest_generation(db, roadmap.id, "beginner") == 2
    assert list_generations(db, roadmap.id, "beginner") == [1, 2]


def test_generations_are_per_level(db, roadmap):
    write_page(db, roadmap.id, "beginner", 1, 1, _videos("b"))

    assert next_generation(db, roadmap.id, "advanced") == 1
    assert list_pages(db, roadmap.id, "advanced", 1) == []


def test_rewriting_a_key_overwrites_it(db, roadmap, count_rows, clock):
    first = write_page(db, roadmap.id, "beginner", 1, 1, _videos("old"))
    created_at = first.created_at
    updated_at = first.updated_at

    page = write_page(db, roadmap.id, "beginner", 1, 1, _videos("new", 3))

    assert count_rows(VideoPage) == 1
    assert [v["videoId"] for v in page.video_data] == ["new-1", "new-2", "new-3"]
    assert page.created_at == created_at
    assert page.updated_at > updated_at


def test_page_gap_rejected(db, roadmap, count_rows):
    write_page(db, roadmap.id, "beginner", 1, 1, _videos("a"))

    with pytest.raises(InvalidArgument):
        write_page(db, roadmap.id, "beginner", 3, 1, _videos("c"))
    with pytest.raises(InvalidArgument):
        # page 1 of generation 2 does not exist yet
        write_page(db, roadmap.id, "beginner", 2, 2, _videos("c"))
    assert count_rows(VideoPage) == 1


def test_sparse_pages_when_allowed(db, roadmap, monkeypatch):
    monkeypatch.setattr(videos, "ALLOW_SPARSE_VIDEO_PAGES", True)

    write_page(db, roadmap.id, "beginner", 3, 1, _videos("c"))

    assert [p.page_number for p in list_pages(db, roadmap.id, "beginner", 1)] == [3]


@pytest.mark.parametrize(
    "level, page_number, generation_number",
    [
        ("beginner", 0, 1),
        ("beginner", 1, 0),
        ("beginner", -1, 1),
        ("beginner", True, 1),
        ("expert", 1, 1),
    ],
)
def test_malformed_key_rejected(db, roadmap, level, page_number, generation_number):
    with pytest.raises(InvalidArgument):
        write_page(db, roadmap.id, level, page_number, generation_number, _videos("x"))


def test_video_data_must_be_a_list(db, roadmap):
    with pytest.raises(InvalidArgument):
        write_page(db, roadmap.id, "beginner", 1, 1, {"videoId": "x"})


def test_write_page_for_missing_roadmap_is_not_found(db):
    with pytest.raises(NotFound):
        write_page(db, uuid.uuid4(), "beginner", 1, 1, _videos("x"))


def test_write_page_checks_ownership(db, roadmap, other_account):
    with pytest.raises(ForbiddenOwnership):
        write_page(db, roadmap.id, "beginner", 1, 1, _videos("x"), account_id=other_account.id)


def test_write_generation_allocates_and_paginates(db, roadmap):
    first = write_generation(db, roadmap.id, "beginner", [_videos("a"), _videos("b", 2)])
    second = write_generation(db, roadmap.id, "beginner", [_videos("c")])

    assert (first, second) == (1, 2)
    assert [p.page_number for p in list_pages(db, roadmap.id, "beginner", 1)] == [1, 2]
    generation, pages = latest_pages(db, roadmap.id, "beginner")
    assert generation == 2
    assert [p.video_data[0]["videoId"] for p in pages] == ["c-1"]


def test_write_generation_for_missing_roadmap(db):
    with pytest.raises(NotFound):
        write_generation(db, uuid.uuid4(), "beginner", [_videos("a")])


def test_latest_pages_empty(db, roadmap):
    assert latest_pages(db, roadmap.id, "beginner") == (0, [])


def test_prune_generations_is_explicit(db, roadmap):
    for prefix in ("a", "b", "c"):
        write_generation(db, roadmap.id, "beginner", [_videos(prefix), _videos(prefix)])
    write_generation(db, roadmap.id, "advanced", [_videos("z")])

    deleted = prune_generations(db, roadmap.id, "beginner", keep_latest=1)

    assert deleted == 4
    assert list_generations(db, roadmap.id, "beginner") == [3]
    assert list_generations(db, roadmap.id, "advanced") == [1]
    # numbering keeps going after a prune
    assert next_generation(db, roadmap.id, "beginner") == 4


def test_delete_level(db, roadmap):
    write_generation(db, roadmap.id, "beginner", [_videos("a")])
    write_generation(db, roadmap.id, "beginner", [_videos("b")])

    assert delete_level(db, roadmap.id, "beginner") == 2
    assert latest_generation(db, roadmap.id, "beginner") == 0


def test_prune_rejects_negative_keep(db, roadmap):
    with pytest.raises(InvalidArgument):
        prune_generations(db, roadmap.id, "beginner", keep_latest=-1)


def test_prune_keeps_generation_written_while_it_runs(file_sessions):
    setup = file_sessions()
    account = create_account(setup, "carol", "$2b$12$carolhash")
    topic = create_topic(setup, account.id, "Go")
    roadmap_id = upsert_roadmap(setup, topic.id, {"points": []}).id
    for prefix in ("a", "b", "c"):
        write_generation(setup, roadmap_id, "beginner", [_videos(prefix)])
    setup.close()

    pruner, writer = file_sessions(), file_sessions()
    engine = file_sessions.kw["bind"]
    fired = []

    def regenerate_before_delete(conn, cursor, statement, parameters, context, executemany):
        if not fired and statement.startswith("DELETE FROM video_pages"):
            fired.append(write_generation(writer, roadmap_id, "beginner", [_videos("d")]))

    event.listen(engine, "before_cursor_execute", regenerate_before_delete)
    try:
        deleted = prune_generations(pruner, roadmap_id, "beginner", keep_latest=1)
    finally:
        event.remove(engine, "before_cursor_execute", regenerate_before_delete)

    assert fired == [4]
    assert deleted == 2
    assert list_generations(pruner, roadmap_id, "beginner") == [3, 4]
    pruner.close()
    writer.close()
