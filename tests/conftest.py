from __future__ import annotations

import shutil
import sys
from collections.abc import Iterator
from pathlib import Path
from uuid import uuid4

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from learncenter.models import Course, Lesson  # noqa: E402
from learncenter.store import MemoryStorage  # noqa: E402


def _tmp_path_fixture() -> Iterator[Path]:
    """Per-test scratch directory under ``.tmp_pytest/`` in the project root.

    Overrides pytest's builtin ``tmp_path`` so state databases written by the
    tests stay inside the workspace and are removed afterwards.
    """
    base = ROOT / ".tmp_pytest"
    base.mkdir(parents=True, exist_ok=True)
    path = base / str(uuid4())
    path.mkdir(parents=True, exist_ok=False)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        try:
            next(base.iterdir())
        except StopIteration:
            base.rmdir()
        except FileNotFoundError:
            pass


tmp_path = pytest.fixture(name="tmp_path")(_tmp_path_fixture)


@pytest.fixture
def course() -> Course:
    """Three-lesson course used by the progress scenarios."""
    return Course(
        key="K",
        title="Course K",
        track="ai-overseas",
        tagline="",
        lessons=(
            Lesson(id="L1", title="One", duration="01:00"),
            Lesson(id="L2", title="Two", duration="02:00"),
            Lesson(id="L3", title="Three", duration="03:00"),
        ),
    )


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()
