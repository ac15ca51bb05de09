"""Core domain models for the course catalog and persisted learner state."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

DEMO_NAME = "Demo user"
DEMO_PURCHASED = ("ai-overseas", "bilibili-goods")


@dataclass(frozen=True)
class Lesson:
    """One lesson inside a course."""

    id: str
    title: str
    duration: str


@dataclass(frozen=True)
class Course:
    """Purchasable course with an ordered lesson list."""

    key: str
    title: str
    track: str
    tagline: str
    lessons: tuple[Lesson, ...]

    def lesson(self, lesson_id: str) -> Lesson | None:
        """Return the lesson with the given id, if the course has one."""
        for lesson in self.lessons:
            if lesson.id == lesson_id:
                return lesson
        return None


@dataclass(frozen=True)
class Track:
    """Marketing track card."""

    key: str
    title: str
    tag: str
    line: str
    bullets: tuple[str, ...]


@dataclass(frozen=True)
class CaseStudy:
    who: str
    what: str


@dataclass(frozen=True)
class FaqEntry:
    question: str
    answer: str


@dataclass(frozen=True)
class Catalog:
    """Static page content: courses plus the presentational collections."""

    courses: tuple[Course, ...]
    tracks: tuple[Track, ...] = ()
    cases: tuple[CaseStudy, ...] = ()
    faq: tuple[FaqEntry, ...] = ()

    def course(self, key: str) -> Course | None:
        """Return the course with the given key, if present."""
        for course in self.courses:
            if course.key == key:
                return course
        return None


@dataclass(frozen=True)
class ProgressRecord:
    """Per-course completion state.

    `completed` keeps completion order and holds each lesson id at most once.
    """

    completed: tuple[str, ...] = ()
    last: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "completed", tuple(dict.fromkeys(self.completed)))

    def to_dict(self) -> dict[str, Any]:
        raw: dict[str, Any] = {"completed": list(self.completed)}
        if self.last is not None:
            raw["last"] = self.last
        return raw

    @classmethod
    def from_dict(cls, raw: object) -> ProgressRecord:
        """Build a record from its JSON shape, rejecting anything malformed."""
        if not isinstance(raw, Mapping):
            raise ValueError("Progress record must be an object.")
        completed = raw.get("completed", [])
        if not isinstance(completed, list) or not all(isinstance(item, str) for item in completed):
            raise ValueError("Progress record 'completed' must be a list of lesson ids.")
        last = raw.get("last")
        if last is not None and not isinstance(last, str):
            raise ValueError("Progress record 'last' must be a lesson id.")
        return cls(completed=tuple(completed), last=last)


@dataclass(frozen=True)
class UserState:
    """The single unit of persistence and mutation."""

    name: str
    purchased: tuple[str, ...]
    progress: Mapping[str, ProgressRecord] = field(default_factory=dict)
    logged_in: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted JSON shape."""
        return {
            "name": self.name,
            "purchased": list(self.purchased),
            "progress": {key: record.to_dict() for key, record in self.progress.items()},
            "loggedIn": self.logged_in,
        }

    @classmethod
    def from_dict(cls, raw: object) -> UserState:
        """Build state from its persisted JSON shape.

        Raises `ValueError` on any shape mismatch; callers treat that as absent state.
        """
        if not isinstance(raw, Mapping):
            raise ValueError("User state must be an object.")
        name = raw.get("name")
        purchased = raw.get("purchased")
        progress = raw.get("progress")
        logged_in = raw.get("loggedIn")
        if not isinstance(name, str):
            raise ValueError("User state 'name' must be a string.")
        if not isinstance(purchased, list) or not all(isinstance(item, str) for item in purchased):
            raise ValueError("User state 'purchased' must be a list of course keys.")
        if not isinstance(progress, Mapping):
            raise ValueError("User state 'progress' must be an object.")
        if not isinstance(logged_in, bool):
            raise ValueError("User state 'loggedIn' must be a boolean.")
        return cls(
            name=name,
            purchased=tuple(purchased),
            progress={str(key): ProgressRecord.from_dict(value) for key, value in progress.items()},
            logged_in=logged_in,
        )


def default_state() -> UserState:
    """Return the demo profile used when nothing usable is persisted."""
    return UserState(name=DEMO_NAME, purchased=DEMO_PURCHASED, progress={}, logged_in=True)
