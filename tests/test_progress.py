import pytest

from learncenter.models import Course, Lesson, ProgressRecord
from learncenter.progress import (
    course_finished,
    course_progress,
    lesson_completed,
    next_lesson,
    progress_percent,
)


def test_no_record_means_zero_progress(course: Course) -> None:
    assert course_progress(course, {}) == 0
    assert course_progress(course, {"other": ProgressRecord(completed=("L1",))}) == 0


def test_ratio_uses_full_lesson_count(course: Course) -> None:
    progress = {"K": ProgressRecord(completed=("L1",))}
    assert course_progress(course, progress) == pytest.approx(1 / 3)
    assert progress_percent(course_progress(course, progress)) == 33


def test_foreign_lesson_ids_do_not_count(course: Course) -> None:
    progress = {"K": ProgressRecord(completed=("L1", "prep-1", "yt-0"))}
    assert course_progress(course, progress) == pytest.approx(1 / 3)


def test_progress_is_monotonic_when_adding_lessons(course: Course) -> None:
    completed: tuple[str, ...] = ()
    previous = course_progress(course, {"K": ProgressRecord(completed=completed)})
    for lesson_id in ("L2", "stray", "L2", "L1", "L3"):
        completed = (*completed, lesson_id)
        current = course_progress(course, {"K": ProgressRecord(completed=completed)})
        assert current >= previous
        previous = current
    assert previous == 1.0


def test_percent_rounds_and_clamps() -> None:
    assert progress_percent(2 / 3) == 67
    assert progress_percent(0.005) == 1
    assert progress_percent(0.0) == 0
    assert progress_percent(1.0) == 100
    assert progress_percent(1.7) == 100
    assert progress_percent(-0.2) == 0


def test_next_lesson_without_record_is_first(course: Course) -> None:
    assert next_lesson(course, {}).id == "L1"


def test_next_lesson_skips_completed_in_catalog_order(course: Course) -> None:
    progress = {"K": ProgressRecord(completed=("L1", "L3"))}
    assert next_lesson(course, progress).id == "L2"


def test_next_lesson_with_empty_record_is_first(course: Course) -> None:
    assert next_lesson(course, {"K": ProgressRecord(last="L3")}).id == "L1"


def test_finished_course_returns_last_lesson(course: Course) -> None:
    progress = {"K": ProgressRecord(completed=("L3", "L1", "L2"))}
    assert next_lesson(course, progress).id == "L3"
    assert course_finished(course, progress) is True


def test_single_lesson_course_always_has_next() -> None:
    single = Course(key="S", title="S", track="t", tagline="", lessons=(Lesson("only", "Only", "1:00"),))
    assert next_lesson(single, {}).id == "only"
    assert next_lesson(single, {"S": ProgressRecord(completed=("only",))}).id == "only"


def test_next_lesson_rejects_empty_course() -> None:
    empty = Course(key="E", title="E", track="t", tagline="", lessons=())
    with pytest.raises(ValueError):
        next_lesson(empty, {})
    assert course_progress(empty, {"E": ProgressRecord()}) == 0


def test_lesson_completed_flags(course: Course) -> None:
    progress = {"K": ProgressRecord(completed=("L2",))}
    assert lesson_completed(course, course.lessons[1], progress) is True
    assert lesson_completed(course, course.lessons[0], progress) is False
    assert lesson_completed(course, course.lessons[0], {}) is False
    assert course_finished(course, progress) is False
