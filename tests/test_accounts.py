import pytest

from skillspark.exceptions import Conflict, InvalidArgument, NotFound
from skillspark.models import (
    Account,
    ProgressEntry,
    Quiz,
    QuizAnswer,
    QuizAttempt,
    Roadmap,
    Settings,
    Topic,
    UsedQuestion,
    VideoPage,
)
from skillspark.services.accounts import (
    create_account,
    delete_account,
    find_by_username,
    get_account,
    username_exists,
)
from skillspark.services.progress import mark_complete
from skillspark.services.quizzes import create_quiz, record_used_questions, save_answer, submit_attempt
from skillspark.services.settings import upsert_settings
from skillspark.services.videos import write_page


def test_create_and_find_account(db):
    account = create_account(db, "alice", "hash-1")

    found = find_by_username(db, "alice")
    assert found.id == account.id
    assert found.credential_hash == "hash-1"
    assert found.created_at is not None
    assert username_exists(db, "alice")
    assert not username_exists(db, "nobody")


def test_duplicate_username_conflicts_and_keeps_original(db, account):
    original_id = account.id

    with pytest.raises(Conflict):
        create_account(db, "alice", "another-hash")

    found = find_by_username(db, "alice")
    assert found.id == original_id
    assert found.credential_hash == "$2b$12$alicehash"


def test_missing_account_is_not_found(db):
    with pytest.raises(NotFound):
        find_by_username(db, "ghost")


def test_empty_username_rejected(db):
    with pytest.raises(InvalidArgument):
        create_account(db, "  ", "hash")


def test_delete_account_cascades_everything(db, account, topic, roadmap, count_rows):
    mark_complete(db, account.id, roadmap.id, "p1")
    write_page(db, roadmap.id, "beginner", 1, 1, [{"videoId": "a"}])
    upsert_settings(db, account.id, {"theme": "dark"})
    quiz = create_quiz(db, roadmap.id, {"questions": [{"question": "What is ownership?", "correctAnswer": 0}]})
    submit_attempt(db, quiz.id, account.id, [{"selectedOption": 0}])
    save_answer(db, quiz.id, account.id, 0, 1)
    record_used_questions(db, account.id, roadmap.id, quiz.questions)
    account_id = account.id

    delete_account(db, account_id)

    owned = (Account, Topic, Roadmap, ProgressEntry, VideoPage, Settings)
    for model in owned + (Quiz, QuizAttempt, QuizAnswer, UsedQuestion):
        assert count_rows(model) == 0
    with pytest.raises(NotFound):
        get_account(db, account_id)


def test_delete_account_leaves_other_accounts(db, account, other_account, count_rows):
    delete_account(db, account.id)

    assert count_rows(Account) == 1
    assert find_by_username(db, "bob").id == other_account.id


def test_delete_missing_account_is_not_found(db, account):
    account_id = account.id
    delete_account(db, account_id)
    with pytest.raises(NotFound):
        delete_account(db, account_id)


def test_related_rows_load_through_relationships(db, account, roadmap):
    mark_complete(db, account.id, roadmap.id, "p1")
    write_page(db, roadmap.id, "beginner", 1, 1, [{"videoId": "v1"}])
    upsert_settings(db, account.id, {"theme": "dark"})

    assert [t.label for t in account.topics] == ["Rust"]
    assert [e.point_id for e in account.progress_entries] == ["p1"]
    assert account.settings.theme.value == "dark"
    assert [p.page_number for p in roadmap.video_pages] == [1]
