"""Application service wiring the catalog, progress calculations and state store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .content_loader import load_catalog
from .models import DEMO_PURCHASED, Catalog, Course, Lesson, ProgressRecord, UserState
from .progress import course_finished, course_progress, lesson_completed, next_lesson, progress_percent
from .store import Storage, UserStateStore, open_storage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LessonStatus:
    """Lesson row for a course card."""

    lesson: Lesson
    completed: bool


@dataclass(frozen=True)
class CourseCard:
    """Learning-center summary for one purchased course."""

    course: Course
    ratio: float
    percent: int
    next_lesson: Lesson
    finished: bool
    lessons: tuple[LessonStatus, ...]


@dataclass(frozen=True)
class RecentLesson:
    """Bookmarked lesson offered for resuming."""

    course: Course
    lesson: Lesson


class LearnService:
    """Coordinates learner state and learning-center flows."""

    def __init__(
        self,
        db_path: Path | str | None = None,
        *,
        catalog: Catalog | None = None,
        storage: Storage | None = None,
    ) -> None:
        """Initialize service with a database path or an explicit storage medium."""
        self.catalog = catalog if catalog is not None else load_catalog()
        self.store = UserStateStore(storage if storage is not None else open_storage(db_path))

    @property
    def user(self) -> UserState:
        return self.store.state

    def update_user(self, **patch: object) -> UserState:
        return self.store.update(**patch)

    def purchased_courses(self) -> list[Course]:
        """Return purchased courses in catalog order; unknown keys never match."""
        purchased = set(self.user.purchased)
        return [course for course in self.catalog.courses if course.key in purchased]

    def course_cards(self) -> list[CourseCard]:
        """Return progress summaries for every purchased course."""
        progress = self.user.progress
        cards: list[CourseCard] = []
        for course in self.purchased_courses():
            ratio = course_progress(course, progress)
            cards.append(
                CourseCard(
                    course=course,
                    ratio=ratio,
                    percent=progress_percent(ratio),
                    next_lesson=next_lesson(course, progress),
                    finished=course_finished(course, progress),
                    lessons=tuple(
                        LessonStatus(lesson=lesson, completed=lesson_completed(course, lesson, progress))
                        for lesson in course.lessons
                    ),
                )
            )
        return cards

    def recent_lessons(self) -> list[RecentLesson]:
        """Return bookmarked lessons of purchased courses.

        A bookmark that does not resolve to a lesson of its course is skipped.
        """
        recent: list[RecentLesson] = []
        for course in self.purchased_courses():
            record = self.user.progress.get(course.key)
            if record is None or record.last is None:
                continue
            lesson = course.lesson(record.last)
            if lesson is None:
                logger.debug("Skipping unresolved bookmark %r for course %s", record.last, course.key)
                continue
            recent.append(RecentLesson(course=course, lesson=lesson))
        return recent

    def mark_complete(self, course: Course, lesson: Lesson) -> UserState:
        """Add the lesson to the course's completed set and bookmark it."""
        record = self.user.progress.get(course.key) or ProgressRecord()
        completed = record.completed if lesson.id in record.completed else (*record.completed, lesson.id)
        return self.store.set_record(course.key, ProgressRecord(completed=completed, last=lesson.id))

    def jump_to(self, course: Course, lesson: Lesson) -> UserState:
        """Bookmark the lesson without touching completion; no gating applies."""
        record = self.user.progress.get(course.key) or ProgressRecord()
        return self.store.set_record(course.key, ProgressRecord(completed=record.completed, last=lesson.id))

    def demo_login(self) -> UserState:
        return self.store.update(logged_in=True, purchased=DEMO_PURCHASED)

    def logout(self) -> UserState:
        return self.store.update(logged_in=False)

    def close(self) -> None:
        """Close persistence resources."""
        self.store.close()
