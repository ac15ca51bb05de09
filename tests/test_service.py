import json
from pathlib import Path

import pytest

from learncenter.models import Catalog, Course, ProgressRecord
from learncenter.service import LearnService
from learncenter.store import STORAGE_KEY, MemoryStorage


def _service(course: Course, storage: MemoryStorage) -> LearnService:
    catalog = Catalog(courses=(course,))
    service = LearnService(catalog=catalog, storage=storage)
    service.update_user(purchased=(course.key,))
    return service


def test_progress_scenario(course: Course, storage: MemoryStorage) -> None:
    service = _service(course, storage)
    l1, l2, l3 = course.lessons
    assert service.course_cards()[0].next_lesson == l1

    service.mark_complete(course, l1)
    card = service.course_cards()[0]
    assert service.user.progress["K"] == ProgressRecord(completed=("L1",), last="L1")
    assert card.percent == 33

    service.mark_complete(course, l2)
    card = service.course_cards()[0]
    assert set(service.user.progress["K"].completed) == {"L1", "L2"}
    assert card.percent == 67

    service.mark_complete(course, l3)
    card = service.course_cards()[0]
    assert set(service.user.progress["K"].completed) == {"L1", "L2", "L3"}
    assert card.percent == 100
    assert card.finished is True
    assert card.next_lesson == l3


def test_mark_complete_is_idempotent(course: Course, storage: MemoryStorage) -> None:
    service = _service(course, storage)
    lesson = course.lessons[1]
    once = service.mark_complete(course, lesson).progress["K"]
    twice = service.mark_complete(course, lesson).progress["K"]
    assert once == twice
    assert twice.completed == ("L2",)


def test_jump_to_does_not_complete(course: Course, storage: MemoryStorage) -> None:
    service = _service(course, storage)
    service.jump_to(course, course.lessons[1])
    record = service.user.progress["K"]
    assert record.last == "L2"
    assert record.completed == ()
    assert service.course_cards()[0].percent == 0


def test_jump_to_keeps_completed(course: Course, storage: MemoryStorage) -> None:
    service = _service(course, storage)
    service.mark_complete(course, course.lessons[0])
    service.jump_to(course, course.lessons[2])
    assert service.user.progress["K"] == ProgressRecord(completed=("L1",), last="L3")


def test_mutations_persist_immediately(course: Course, storage: MemoryStorage) -> None:
    service = _service(course, storage)
    service.mark_complete(course, course.lessons[0])
    raw = json.loads(storage.get_item(STORAGE_KEY) or "")
    assert raw["progress"] == {"K": {"completed": ["L1"], "last": "L1"}}


def test_rapid_mutations_across_courses_compose(storage: MemoryStorage) -> None:
    service = LearnService(storage=storage)
    first, _, third = service.catalog.courses
    service.mark_complete(first, first.lessons[0])
    service.jump_to(third, third.lessons[2])
    restarted = LearnService(storage=storage)
    assert set(restarted.user.progress) == {"ai-overseas", "bilibili-goods"}


def test_purchased_courses_follow_catalog_order_and_ignore_unknown(storage: MemoryStorage) -> None:
    service = LearnService(storage=storage)
    service.update_user(purchased=("bilibili-goods", "not-a-course", "ai-overseas"))
    assert [course.key for course in service.purchased_courses()] == ["ai-overseas", "bilibili-goods"]


def test_default_user_sees_two_course_cards(storage: MemoryStorage) -> None:
    service = LearnService(storage=storage)
    cards = service.course_cards()
    assert [card.course.key for card in cards] == ["ai-overseas", "bilibili-goods"]
    assert all(card.percent == 0 for card in cards)
    assert cards[0].next_lesson.id == "prep-1"
    assert all(not status.completed for status in cards[0].lessons)


def test_recent_lessons_lists_bookmarks(storage: MemoryStorage) -> None:
    service = LearnService(storage=storage)
    course = service.catalog.courses[0]
    assert service.recent_lessons() == []
    service.jump_to(course, course.lessons[3])
    recent = service.recent_lessons()
    assert len(recent) == 1
    assert recent[0].course == course
    assert recent[0].lesson.id == "ship-1"


def test_recent_lessons_skip_foreign_bookmark(storage: MemoryStorage) -> None:
    service = LearnService(storage=storage)
    overseas, yt, _ = service.catalog.courses
    service.jump_to(overseas, yt.lessons[0])
    assert service.user.progress["ai-overseas"].last == "yt-0"
    assert service.recent_lessons() == []


def test_recent_lessons_only_for_purchased(storage: MemoryStorage) -> None:
    service = LearnService(storage=storage)
    yt = service.catalog.courses[1]
    service.jump_to(yt, yt.lessons[0])
    assert service.recent_lessons() == []


def test_logout_and_demo_login(storage: MemoryStorage) -> None:
    service = LearnService(storage=storage)
    service.update_user(purchased=())
    assert service.logout().logged_in is False
    state = service.demo_login()
    assert state.logged_in is True
    assert state.purchased == ("ai-overseas", "bilibili-goods")


def test_state_survives_restart_with_database(tmp_path: Path) -> None:
    db_path = tmp_path / "learn.db"
    service = LearnService(db_path)
    course = service.catalog.courses[0]
    merged = service.mark_complete(course, course.lessons[0])
    service.close()

    restarted = LearnService(db_path)
    try:
        assert restarted.user == merged
    finally:
        restarted.close()


def test_update_user_unknown_field(storage: MemoryStorage) -> None:
    service = LearnService(storage=storage)
    with pytest.raises(TypeError):
        service.update_user(email="x@example.com")
