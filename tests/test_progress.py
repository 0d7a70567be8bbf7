import uuid
from datetime import datetime

import pytest

from skillspark.exceptions import ForbiddenOwnership, InvalidArgument, NotFound
from skillspark.models import ProgressEntry
from skillspark.services.progress import (
    list_account_progress,
    list_progress,
    mark_complete,
    mark_incomplete,
    progress_summary,
)
from skillspark.services.roadmaps import upsert_roadmap
from skillspark.services.topics import create_topic


def test_mark_complete_twice_keeps_one_row(db, account, roadmap, count_rows):
    first = datetime(2024, 5, 1, 9, 0, 0)
    second = datetime(2024, 5, 2, 18, 30, 0)

    mark_complete(db, account.id, roadmap.id, "p2", completed_at=first)
    entry = mark_complete(db, account.id, roadmap.id, "p2", completed_at=second)

    assert count_rows(ProgressEntry) == 1
    assert entry.is_completed is True
    assert entry.completed_at == second
    [stored] = list_progress(db, account.id, roadmap.id)
    assert stored.completed_at == second


def test_mark_complete_defaults_timestamp(db, account, roadmap):
    entry = mark_complete(db, account.id, roadmap.id, "p1")

    assert entry.completed_at is not None


def test_mark_incomplete_keeps_row(db, account, roadmap, count_rows):
    created = mark_complete(db, account.id, roadmap.id, "p1")
    created_id = created.id

    entry = mark_incomplete(db, account.id, roadmap.id, "p1")

    assert entry.id == created_id
    assert entry.is_completed is False
    assert entry.completed_at is None
    assert count_rows(ProgressEntry) == 1


def test_mark_incomplete_tracks_untouched_point(db, account, roadmap):
    entry = mark_incomplete(db, account.id, roadmap.id, "p3")

    assert entry.is_completed is False
    assert [e.point_id for e in list_progress(db, account.id, roadmap.id)] == ["p3"]


def test_progress_is_scoped_per_point(db, account, roadmap):
    mark_complete(db, account.id, roadmap.id, "p1")
    mark_complete(db, account.id, roadmap.id, "p2")

    assert {e.point_id for e in list_progress(db, account.id, roadmap.id)} == {"p1", "p2"}
    assert len(list_account_progress(db, account.id)) == 2


def test_reading_other_accounts_progress_is_forbidden(db, account, other_account, roadmap):
    mark_complete(db, account.id, roadmap.id, "p1")

    with pytest.raises(ForbiddenOwnership):
        list_progress(db, other_account.id, roadmap.id)


def test_writing_other_accounts_progress_is_forbidden(db, other_account, roadmap, count_rows):
    with pytest.raises(ForbiddenOwnership):
        mark_complete(db, other_account.id, roadmap.id, "p1")
    assert count_rows(ProgressEntry) == 0


def test_progress_for_missing_roadmap_is_not_found(db, account):
    with pytest.raises(NotFound):
        list_progress(db, account.id, uuid.uuid4())
    with pytest.raises(NotFound):
        mark_complete(db, account.id, uuid.uuid4(), "p1")


def test_empty_point_id_rejected(db, account, roadmap):
    with pytest.raises(InvalidArgument):
        mark_complete(db, account.id, roadmap.id, "")


def test_progress_summary(db, account, roadmap):
    # the fixture document exposes step_1..step_3 and p1..p3
    mark_complete(db, account.id, roadmap.id, "p1")
    mark_complete(db, account.id, roadmap.id, "step_2")
    mark_complete(db, account.id, roadmap.id, "not-in-document")
    mark_incomplete(db, account.id, roadmap.id, "p3")

    summary = progress_summary(db, account.id, roadmap.id)

    assert summary == {"completed": 2, "total": 6, "percentage": 33}


def test_progress_summary_rounds_halves_up(db, account):
    topic = create_topic(db, account.id, "Haskell")
    roadmap = upsert_roadmap(db, topic.id, {"points": [{"id": f"p{i}"} for i in range(1, 9)]})

    mark_complete(db, account.id, roadmap.id, "p1")

    assert progress_summary(db, account.id, roadmap.id) == {"completed": 1, "total": 8, "percentage": 13}


def test_progress_summary_of_empty_document(db, account):
    topic = create_topic(db, account.id, "Empty")
    roadmap = upsert_roadmap(db, topic.id, {"points": []})

    assert progress_summary(db, account.id, roadmap.id) == {"completed": 0, "total": 0, "percentage": 0}


def test_repeated_upsert_bumps_updated_at(db, account, roadmap, clock):
    first = mark_complete(db, account.id, roadmap.id, "p1")
    created_at, updated_at = first.created_at, first.updated_at

    entry = mark_incomplete(db, account.id, roadmap.id, "p1")

    assert entry.created_at == created_at
    assert entry.updated_at > updated_at
