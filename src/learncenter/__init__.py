"""learncenter package."""

from __future__ import annotations

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

_PYPROJECT = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _checkout_version() -> str | None:
    """Version declared by the source checkout this package was imported from."""
    if not _PYPROJECT.is_file():
        return None
    with _PYPROJECT.open("rb") as handle:
        project = tomllib.load(handle).get("project", {})
    if project.get("name") != "learncenter":
        return None
    declared = project.get("version")
    return declared if isinstance(declared, str) else None


__version__ = _checkout_version()
if __version__ is None:
    try:
        __version__ = version("learncenter")
    except PackageNotFoundError:
        __version__ = "0+unknown"
