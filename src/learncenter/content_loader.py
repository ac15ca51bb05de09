"""Load the static course catalog and page content from bundled JSON resources."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

from .models import CaseStudy, Catalog, Course, FaqEntry, Lesson, Track

CONTENT_PACKAGE = "learncenter.content"
CATALOG_FILE = "catalog.json"
SITE_FILE = "site.json"


def _lesson_from_dict(raw: dict[str, Any]) -> Lesson:
    """Build a lesson from raw JSON content."""
    return Lesson(id=str(raw["id"]), title=str(raw["title"]), duration=str(raw.get("duration", "")))


def _course_from_dict(raw: dict[str, Any]) -> Course:
    """Build a course from raw JSON content, keeping lesson order."""
    key = str(raw["key"])
    return Course(
        key=key,
        title=str(raw["title"]),
        track=str(raw.get("track", key)),
        tagline=str(raw.get("tagline", "")),
        lessons=tuple(_lesson_from_dict(item) for item in raw.get("lessons", [])),
    )


def _track_from_dict(raw: dict[str, Any]) -> Track:
    return Track(
        key=str(raw["key"]),
        title=str(raw["title"]),
        tag=str(raw.get("tag", "")),
        line=str(raw.get("line", "")),
        bullets=tuple(str(item) for item in raw.get("bullets", [])),
    )


def _catalog_from_dicts(catalog_raw: dict[str, Any], site_raw: dict[str, Any]) -> Catalog:
    """Build and validate a catalog from the two raw JSON documents."""
    catalog = Catalog(
        courses=tuple(_course_from_dict(item) for item in catalog_raw.get("courses", [])),
        tracks=tuple(_track_from_dict(item) for item in site_raw.get("tracks", [])),
        cases=tuple(CaseStudy(who=str(item["who"]), what=str(item["what"])) for item in site_raw.get("cases", [])),
        faq=tuple(
            FaqEntry(question=str(item["question"]), answer=str(item["answer"])) for item in site_raw.get("faq", [])
        ),
    )
    _validate_courses(catalog)
    _validate_tracks(catalog)
    return catalog


def load_catalog() -> Catalog:
    """Load the bundled catalog."""
    root = resources.files(CONTENT_PACKAGE)
    catalog_raw = json.loads(root.joinpath(CATALOG_FILE).read_text(encoding="utf-8-sig"))
    site_raw = json.loads(root.joinpath(SITE_FILE).read_text(encoding="utf-8-sig"))
    return _catalog_from_dicts(catalog_raw, site_raw)


def load_catalog_from_dir(path: Path) -> Catalog:
    """Load a catalog from a directory for tests/tools.

    `site.json` is optional; without it the catalog carries courses only.
    """
    catalog_raw = json.loads((path / CATALOG_FILE).read_text(encoding="utf-8-sig"))
    site_path = path / SITE_FILE
    site_raw: dict[str, Any] = {}
    if site_path.exists():
        site_raw = json.loads(site_path.read_text(encoding="utf-8-sig"))
    return _catalog_from_dicts(catalog_raw, site_raw)


def _validate_courses(catalog: Catalog) -> None:
    """Validate course keys are unique and every course has uniquely identified lessons."""
    seen_keys: set[str] = set()
    for course in catalog.courses:
        if course.key in seen_keys:
            raise ValueError(f"Duplicate course key: {course.key}")
        seen_keys.add(course.key)
        if not course.lessons:
            raise ValueError(f"Course '{course.key}' has no lessons.")
        seen_lessons: set[str] = set()
        for lesson in course.lessons:
            if lesson.id in seen_lessons:
                raise ValueError(f"Duplicate lesson id '{lesson.id}' in course '{course.key}'.")
            seen_lessons.add(lesson.id)


def _validate_tracks(catalog: Catalog) -> None:
    """Validate every course points at a known track when tracks are present."""
    if not catalog.tracks:
        return
    track_keys = {track.key for track in catalog.tracks}
    if len(track_keys) != len(catalog.tracks):
        raise ValueError("Duplicate track key in site content.")
    for course in catalog.courses:
        if course.track not in track_keys:
            raise ValueError(f"Course '{course.key}' has unknown track '{course.track}'.")
