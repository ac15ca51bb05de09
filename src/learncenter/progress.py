"""Pure progress calculations over a course and the learner's progress map."""

from __future__ import annotations

import math
from collections.abc import Mapping

from .models import Course, Lesson, ProgressRecord

UserProgress = Mapping[str, ProgressRecord]


def course_progress(course: Course, progress: UserProgress) -> float:
    """Return the completed share of the course's lessons in [0, 1].

    Only ids belonging to the course count; the denominator is the full lesson count.
    """
    record = progress.get(course.key)
    if record is None or not course.lessons:
        return 0.0
    done = set(record.completed)
    return sum(1 for lesson in course.lessons if lesson.id in done) / len(course.lessons)


def progress_percent(ratio: float) -> int:
    """Round a ratio to a whole percentage clamped to [0, 100]."""
    # halves round up, not to even
    return max(0, min(100, math.floor(ratio * 100 + 0.5)))


def next_lesson(course: Course, progress: UserProgress) -> Lesson:
    """Return the lesson to resume from.

    First lesson without a record, else the first uncompleted lesson in catalog
    order. A fully completed course hands back its last lesson.
    """
    if not course.lessons:
        raise ValueError(f"Course '{course.key}' has no lessons.")
    record = progress.get(course.key)
    if record is None:
        return course.lessons[0]
    done = set(record.completed)
    for lesson in course.lessons:
        if lesson.id not in done:
            return lesson
    return course.lessons[-1]


def lesson_completed(course: Course, lesson: Lesson, progress: UserProgress) -> bool:
    record = progress.get(course.key)
    return record is not None and lesson.id in record.completed


def course_finished(course: Course, progress: UserProgress) -> bool:
    """Return whether every lesson of the course is completed."""
    return bool(course.lessons) and course_progress(course, progress) >= 1.0
