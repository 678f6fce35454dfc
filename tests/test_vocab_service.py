import pytest

from app.service.scheduling import ReviewQuality
from app.service.vocab_service import VocabError, VocabNotFound
from tests.conftest import DAY0, days, make_record


def test_save_new_word(service):
    record = service.save_word(" καλημέρα ", "good morning", DAY0, context="Καλημέρα σας!", timestamp=12.5, video_id="abc")
    assert record.original == "καλημέρα"
    assert record.review_count == 0
    assert record.last_reviewed is None
    assert record.date_added == DAY0
    assert service.get_word(record.id) == record


def test_saving_known_word_counts_as_review(service):
    first = service.save_word("Καλημέρα", "good morning", DAY0, context="first", video_id="abc")
    again = service.save_word("καλημέρα", "morning greeting", DAY0 + days(2))
    assert again.id == first.id
    assert again.translation == "morning greeting"
    assert again.context == "first"
    assert again.video_id == "abc"
    assert again.review_count == 1
    assert again.last_reviewed == DAY0 + days(2)
    assert again.date_added == DAY0
    assert len(service.list_words()) == 1


@pytest.mark.parametrize("original, translation", [("", "x"), ("   ", "x"), ("λέξη", ""), ("a" * 501, "x")])
def test_save_rejects_bad_text(service, original, translation):
    with pytest.raises(VocabError):
        service.save_word(original, translation, DAY0)


def test_record_review_persists(service, repo):
    repo.put(make_record("a"))
    updated = service.record_review("a", DAY0 + days(1), quality=ReviewQuality.AGAIN)
    assert updated.review_count == 1
    assert repo.get("a") == updated


def test_record_review_explicit_count(service, repo):
    repo.put(make_record("a", reviews=3, last_reviewed=DAY0))
    assert service.record_review("a", DAY0 + days(1), review_count=0).review_count == 0


def test_record_review_errors(service, repo):
    with pytest.raises(VocabNotFound):
        service.record_review("missing", DAY0)
    repo.put(make_record("a"))
    with pytest.raises(VocabError):
        service.record_review("a", DAY0, quality=9)
    with pytest.raises(VocabError):
        service.record_review("a", DAY0, review_count=-1)


def test_update_and_delete(service, repo):
    repo.put(make_record("a"))
    updated = service.update_word("a", translation="new", context="ctx")
    assert (updated.translation, updated.context) == ("new", "ctx")
    service.delete_word("a")
    assert repo.get("a") is None
    with pytest.raises(VocabNotFound):
        service.delete_word("a")


def test_study_session_resumes_fixed_order(service, repo):
    for i in range(3):
        repo.put(make_record(str(i), added=DAY0 + days(i)))
    session = service.study_session(DAY0)
    ids = [item.record.id for item in session.queue.study_items]
    assert ids == ["0", "1", "2"]

    service.answer(session, DAY0, ReviewQuality.GOOD)
    repo.delete("2")
    resumed = service.study_session(DAY0, ids, session.position)
    assert [item.record.id for item in resumed.queue.study_items] == ["0", "1"]
    assert resumed.current.record.id == "1"
    assert resumed.queue.total_items == 2
    assert repo.get("0").review_count == 1


def test_answer_on_finished_session(service, repo):
    repo.put(make_record("a"))
    session = service.study_session(DAY0, ["a"], 1)
    with pytest.raises(VocabError):
        service.answer(session, DAY0, ReviewQuality.GOOD)


def test_export_import(service, repo):
    repo.put(make_record("a", reviews=2, last_reviewed=DAY0 + days(1)))
    exported = service.export_words()
    repo.delete_all()

    rows = exported + [
        {"original": "νερό", "translation": "water"},
        {"original": "", "translation": "skipped"},
        "not a row",
        {"original": "x", "translation": "y", "dateAdded": "not a date"},
    ]
    assert service.import_words(rows) == 2
    assert repo.get("a") == make_record("a", reviews=2, last_reviewed=DAY0 + days(1))
    water = repo.find_by_original_text("ΝΕΡΌ")
    assert water is not None and water.translation == "water"
    assert water.date_added is None

    with pytest.raises(VocabError):
        service.import_words({"original": "x"})


@pytest.mark.parametrize("timestamp", [float("nan"), float("inf"), -1.0])
def test_save_rejects_bad_timestamp(service, timestamp):
    with pytest.raises(VocabError):
        service.save_word("νερό", "water", DAY0, timestamp=timestamp)
    assert service.list_words() == []


def test_import_skips_rows_with_bad_timestamp(service, repo):
    rows = [
        {"id": "nan", "original": "νερό", "translation": "water", "timestamp": float("nan")},
        {"id": "inf", "original": "ψωμί", "translation": "bread", "timestamp": float("inf")},
        {"id": "ok", "original": "κρασί", "translation": "wine", "timestamp": 4.5},
    ]
    assert service.import_words(rows) == 1
    assert [r.id for r in repo.list_all()] == ["ok"]


def test_import_skips_rows_with_inconsistent_review_state(service, repo):
    rows = [
        {"id": "x", "original": "νερό", "translation": "water", "reviewCount": 3},
        {"id": "y", "original": "ψωμί", "translation": "bread", "reviewCount": 0,
         "lastReviewed": "2024-01-01T00:00:00+00:00", "dateAdded": "2024-03-05T00:00:00+00:00"},
        {"id": "z", "original": "κρασί", "translation": "wine", "reviewCount": 2,
         "lastReviewed": "2024-01-01T00:00:00+00:00", "dateAdded": "2024-03-05T00:00:00+00:00"},
        {"id": "ok", "original": "ελιά", "translation": "olive", "reviewCount": 1,
         "lastReviewed": "2024-03-06T00:00:00Z", "dateAdded": "2024-03-05T00:00:00Z"},
    ]
    assert service.import_words(rows) == 1
    assert repo.get("x") is None
    assert repo.get("y") is None
    assert repo.get("z") is None
    assert repo.get("ok").review_count == 1


@pytest.fixture
def three_words(repo):
    repo.put(make_record("a", original="Ωμέγα", added=DAY0))
    repo.put(make_record("b", original="άλφα", added=DAY0 + days(1), reviews=2, last_reviewed=DAY0 + days(2)))
    repo.put(make_record("c", original="Βήτα", added=DAY0 + days(2), reviews=1, last_reviewed=DAY0 + days(3)))


@pytest.mark.parametrize("sort, expected", [
    ("date-desc", ["c", "b", "a"]),
    ("date-asc", ["a", "b", "c"]),
    ("alpha-asc", ["b", "c", "a"]),
    ("alpha-desc", ["a", "c", "b"]),
    ("review-count-asc", ["a", "c", "b"]),
    ("review-count-desc", ["b", "c", "a"]),
    ("last-reviewed-asc", ["b", "c", "a"]),
    ("last-reviewed-desc", ["c", "b", "a"]),
])
def test_list_words_sort_orders(service, three_words, sort, expected):
    assert [r.id for r in service.list_words(sort=sort)] == expected


def test_list_words_defaults_to_newest_first(service, three_words):
    assert [r.id for r in service.list_words()] == ["c", "b", "a"]


def test_list_words_search_is_case_insensitive(service, three_words):
    assert [r.id for r in service.list_words(search="ΒΉΤΑ")] == ["c"]
    assert [r.id for r in service.list_words(search="WORD-A")] == ["a"]
    assert service.list_words(search="nothing") == []
    assert len(service.list_words(search="  ")) == 3


def test_list_words_rejects_unknown_sort(service):
    with pytest.raises(VocabError):
        service.list_words(sort="part-of-speech")


def test_answer_rejects_repeated_or_stale_card(service, repo):
    repo.put(make_record("a"))
    repo.put(make_record("b", added=DAY0 + days(1)))
    session = service.study_session(DAY0, ["a", "b"], 0)
    service.answer(session, DAY0, ReviewQuality.GOOD, card_id="a", expected_review_count=0)

    # the same submission again: position 0 still points at "a", now reviewed once
    again = service.study_session(DAY0, ["a", "b"], 0)
    with pytest.raises(VocabError):
        service.answer(again, DAY0, ReviewQuality.GOOD, card_id="a", expected_review_count=0)
    assert repo.get("a").review_count == 1

    # "a" deleted: position 1 no longer holds the card the learner saw
    repo.delete("a")
    shifted = service.study_session(DAY0, ["a", "b"], 1)
    with pytest.raises(VocabError):
        service.answer(shifted, DAY0, ReviewQuality.GOOD, card_id="b", expected_review_count=0)
    assert repo.get("b").review_count == 0
