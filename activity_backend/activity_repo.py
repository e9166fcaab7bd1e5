from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable, Protocol

from activity_backend.activity_model import Activity
from activity_backend.activity_parser import ActivityParseError, parse_activity


logger = logging.getLogger(__name__)

TEMPLATE_NAME = "TEMPLATE.md"
_SLUG_RE = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]*")


class ActivityRepo(Protocol):
    def list_slugs(self) -> list[str]: ...

    def read(self, slug: str) -> str | None: ...

    def save(self, slug: str, text: str) -> str: ...

    def reset(self) -> list[str]: ...


def is_valid_slug(slug: str) -> bool:
    return bool(_SLUG_RE.fullmatch(slug or ""))


def unique_slug(slug: str, taken: Iterable[str]) -> str:
    """
    First free slug among `slug`, `slug-2`, `slug-3`, ...
    Generated documents never overwrite an existing one.
    """
    taken = set(taken)
    if slug not in taken:
        return slug
    n = 2
    while f"{slug}-{n}" in taken:
        n += 1
    return f"{slug}-{n}"


class InMemoryActivityRepo:
    def __init__(self, documents: dict[str, str] | None = None, *, protected: Iterable[str] = ()) -> None:
        self._docs: dict[str, str] = dict(documents or {})
        self._protected = set(protected)

    def list_slugs(self) -> list[str]:
        return sorted(self._docs)

    def read(self, slug: str) -> str | None:
        return self._docs.get(slug)

    def save(self, slug: str, text: str) -> str:
        if not is_valid_slug(slug):
            raise ValueError(f"Invalid slug: {slug!r}")
        slug = unique_slug(slug, self._docs)
        self._docs[slug] = text
        return slug

    def reset(self) -> list[str]:
        removed = [s for s in sorted(self._docs) if s not in self._protected]
        for s in removed:
            del self._docs[s]
        return removed


class FileActivityRepo:
    """
    One markdown file per activity: `<directory>/<slug>.md`.
    TEMPLATE.md lives alongside the activities and is never listed.
    """

    def __init__(self, directory: str | Path, *, protected: Iterable[str] = ()) -> None:
        self.directory = Path(directory)
        self._protected = set(protected)

    def _path(self, slug: str) -> Path | None:
        if not is_valid_slug(slug):
            return None
        return self.directory / f"{slug}.md"

    def list_slugs(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.md") if p.name != TEMPLATE_NAME)

    def read(self, slug: str) -> str | None:
        path = self._path(slug)
        if path is None or not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    def save(self, slug: str, text: str) -> str:
        if self._path(slug) is None:
            raise ValueError(f"Invalid slug: {slug!r}")
        self.directory.mkdir(parents=True, exist_ok=True)
        slug = unique_slug(slug, self.list_slugs())
        path = self.directory / f"{slug}.md"
        path.write_text(text, encoding="utf-8")
        return slug

    def reset(self) -> list[str]:
        removed: list[str] = []
        for slug in self.list_slugs():
            if slug in self._protected:
                continue
            try:
                (self.directory / f"{slug}.md").unlink()
            except FileNotFoundError:
                continue
            removed.append(slug)
        logger.info("Removed %d generated activities from %s", len(removed), self.directory)
        return removed


def load_activity(repo: ActivityRepo, slug: str) -> Activity | None:
    raw = repo.read(slug)
    if raw is None:
        return None
    return parse_activity(raw, slug)


def load_all_activities(repo: ActivityRepo) -> list[Activity]:
    """Every readable activity; a document that fails to parse is logged and left out."""
    activities: list[Activity] = []
    for slug in repo.list_slugs():
        try:
            activity = load_activity(repo, slug)
        except ActivityParseError as e:
            logger.error("Skipping activity %s: %s", slug, e)
            continue
        if activity is not None:
            activities.append(activity)
    return activities


def _csv_env(name: str) -> list[str]:
    raw = os.environ.get(name) or ""
    return [s.strip() for s in raw.split(",") if s.strip()]


def make_activity_repo() -> ActivityRepo:
    directory = (os.environ.get("ACTIVITIES_DIR") or "").strip() or "activities"
    protected = _csv_env("PROTECTED_ACTIVITIES")
    if directory == ":memory:":
        return InMemoryActivityRepo(protected=protected)
    return FileActivityRepo(directory, protected=protected)


class AssetDir:
    """Uploaded reading files, served by the web client under `/assets/`."""

    def __init__(self, directory: str | Path, *, protected: Iterable[str] = ()) -> None:
        self.directory = Path(directory)
        self._protected = set(protected)

    def save(self, filename: str, data: bytes) -> str:
        """
        Stores `data` under the first free name among `name.pdf`, `name-2.pdf`,
        ... and returns its `/assets/` path. Protected names count as taken.
        """
        name = Path(filename).name
        if not name:
            raise ValueError("Missing asset filename")
        self.directory.mkdir(parents=True, exist_ok=True)

        stem, suffix = Path(name).stem, Path(name).suffix
        taken = {p.stem for p in self.directory.iterdir() if p.suffix == suffix}
        taken |= {Path(n).stem for n in self._protected if Path(n).suffix == suffix}
        name = unique_slug(stem, taken) + suffix

        (self.directory / name).write_bytes(data)
        return f"/assets/{name}"

    def reset(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        removed: list[str] = []
        for path in sorted(self.directory.iterdir()):
            if not path.is_file() or path.name in self._protected:
                continue
            path.unlink()
            removed.append(path.name)
        logger.info("Removed %d uploaded assets from %s", len(removed), self.directory)
        return removed


def make_asset_dir() -> AssetDir:
    directory = (os.environ.get("ASSETS_DIR") or "").strip() or os.path.join("public", "assets")
    protected = _csv_env("PROTECTED_ASSETS")
    return AssetDir(directory, protected=protected)
