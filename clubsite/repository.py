"""
Content repository: one persistence interface over whichever backend the
process was configured with.

The backend is chosen once, when the repository is built. Handlers call the
entity operations below and never branch on the provider; filter, sort and
record shape rules are applied here so both backends answer identically.
"""

from __future__ import annotations

import logging
import secrets
import string
from pathlib import Path
from typing import Optional

from clubsite.demo_content import demo_bulletin, demo_power_stones
from clubsite.documents import DocumentStore, MongoDocumentStore
from clubsite.errors import BackendUnavailable, NotFoundError
from clubsite.filestore import JsonDocumentStore
from clubsite.gallery import gallery_images
from clubsite.records import (
    BULLETIN_ARCHIVE_FIELDS,
    BULLETIN_LANGS,
    BULLETINS,
    DEFAULT_BULLETIN_LANG,
    GAMES,
    HIGHLIGHTS,
    LEADERBOARD,
    POWER_STONES,
    PROJECT_TYPES,
    PROJECTS,
    EntitySpec,
    enum_filter,
    epoch_ms,
    utc_now_iso,
    utc_today,
)

logger = logging.getLogger(__name__)

DEFAULT_LEADERBOARD_LIMIT = 10
MAX_LEADERBOARD_LIMIT = 100

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


def clamp_limit(limit: Optional[int]) -> int:
    if not limit:
        return DEFAULT_LEADERBOARD_LIMIT
    return max(1, min(limit, MAX_LEADERBOARD_LIMIT))


class ContentRepository:
    """Entity operations for projects, highlights, power stones, bulletins and scores."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        local_files: JsonDocumentStore,
        project_file_fallback: bool = False,
        gallery_dir: Path | str | None = None,
    ):
        self.store = store
        self.local_files = local_files
        self.project_file_fallback = project_file_fallback
        self.gallery_dir = gallery_dir

    @property
    def provider(self) -> str:
        return self.store.provider

    def _backend(self, spec: EntitySpec) -> Optional[DocumentStore]:
        return self.store if self.store.supports(spec) else None

    def _require(self, spec: EntitySpec) -> DocumentStore:
        backend = self._backend(spec)
        if backend is None:
            raise BackendUnavailable()
        return backend

    def _find(self, spec: EntitySpec, filter_: Optional[dict] = None, limit=None) -> list[dict]:
        backend = self._backend(spec)
        if backend is None:
            return []
        docs = backend.find(spec, filter_, sort=spec.sort, limit=limit)
        return [spec.shape(doc) for doc in docs]

    def _update(self, spec: EntitySpec, record_id: str, changes: dict) -> dict:
        updated = self._require(spec).update(spec, {"id": record_id}, changes)
        if updated is None:
            raise NotFoundError()
        return spec.shape(updated)

    def _delete(self, spec: EntitySpec, record_id: str) -> None:
        if not self._require(spec).delete(spec, {"id": record_id}):
            raise NotFoundError()

    # -------------------------- projects --------------------------
    def list_projects(self, type_: Optional[str] = None) -> list[dict]:
        filter_ = enum_filter("type", type_, PROJECT_TYPES)
        items = self._find(PROJECTS, filter_)
        if (
            not items
            and self.project_file_fallback
            and self.local_files is not self.store
        ):
            docs = self.local_files.find(PROJECTS, filter_, sort=PROJECTS.sort)
            items = [PROJECTS.shape(doc) for doc in docs]
        return items

    def create_project(
        self,
        *,
        type_: str,
        title: str,
        description: str,
        image: str,
        project_id: Optional[str] = None,
    ) -> dict:
        new_id = project_id or f"{type_}-{epoch_ms()}"
        record = {
            "id": new_id,
            "type": type_,
            "title": title,
            "description": description,
            "image": image,
        }
        saved = self._require(PROJECTS).upsert(PROJECTS, {"id": new_id}, record)
        return PROJECTS.shape(saved)

    def update_project(self, project_id: str, changes: dict) -> dict:
        return self._update(PROJECTS, project_id, changes)

    def delete_project(self, project_id: str) -> None:
        self._delete(PROJECTS, project_id)

    def import_local_projects(self) -> dict:
        """Copy every project from the JSON file into the active provider."""
        items = self.local_files.find(PROJECTS)
        if self.store is self.local_files:
            return {"imported": 0, "provider": self.provider, "total": len(items)}
        backend = self._require(PROJECTS)
        imported = 0
        for item in items:
            if not item.get("id"):
                continue
            record = PROJECTS.shape(item)
            backend.upsert(PROJECTS, {"id": record["id"]}, record)
            imported += 1
        total = backend.count(PROJECTS)
        logger.info("Imported %d local projects into %s", imported, self.provider)
        return {"imported": imported, "provider": self.provider, "total": total}

    # -------------------------- highlights --------------------------
    def highlight_images(self) -> list[str]:
        images = [doc["src"] for doc in self._find(HIGHLIGHTS) if doc.get("src")]
        if images:
            return images
        if self.gallery_dir is None:
            return []
        return gallery_images(self.gallery_dir)

    def list_highlights(self) -> list[dict]:
        self._require(HIGHLIGHTS)
        return self._find(HIGHLIGHTS)

    def create_highlight(
        self,
        *,
        src: str,
        title: Optional[str] = None,
        order: Optional[int] = None,
        highlight_id: Optional[str] = None,
    ) -> dict:
        backend = self._require(HIGHLIGHTS)
        if order is None:
            order = backend.count(HIGHLIGHTS)
        new_id = highlight_id or f"hl-{epoch_ms()}"
        record = {"id": new_id, "src": src, "title": title or "", "order": order}
        saved = backend.upsert(HIGHLIGHTS, {"id": new_id}, record)
        return HIGHLIGHTS.shape(saved)

    def update_highlight(self, highlight_id: str, changes: dict) -> dict:
        return self._update(HIGHLIGHTS, highlight_id, changes)

    def delete_highlight(self, highlight_id: str) -> None:
        self._delete(HIGHLIGHTS, highlight_id)

    # -------------------------- power stones --------------------------
    def power_stones(self) -> list[dict]:
        """Stored stones by slot, or the demo set when none are stored."""
        return self._find(POWER_STONES) or demo_power_stones()

    def list_power_stones(self) -> list[dict]:
        self._require(POWER_STONES)
        return self._find(POWER_STONES)

    def save_power_stone(
        self,
        *,
        slot: int,
        src: str,
        title: Optional[str] = None,
        stone_id: Optional[str] = None,
    ) -> dict:
        record = {
            "id": stone_id or f"ps-{slot}",
            "slot": slot,
            "src": src,
            "title": title or "",
        }
        saved = self._require(POWER_STONES).upsert(
            POWER_STONES, {"slot": slot}, record
        )
        return POWER_STONES.shape(saved)

    def delete_power_stone(self, stone_id: str) -> None:
        self._delete(POWER_STONES, stone_id)

    # -------------------------- bulletins --------------------------
    def bulletins_for(self, lang: Optional[str] = DEFAULT_BULLETIN_LANG) -> dict:
        """
        Split a language's bulletins into the newest one and the archive.

        An unrecognized language applies no filter. When nothing is stored the
        demo bulletin for the language is returned as ``latest``.
        """
        filter_ = enum_filter("lang", lang, BULLETIN_LANGS)
        items = self._find(BULLETINS, filter_)
        if not items:
            return {
                "latest": demo_bulletin(filter_.get("lang", DEFAULT_BULLETIN_LANG)),
                "archives": [],
            }
        archives = [
            {name: doc.get(name) for name in BULLETIN_ARCHIVE_FIELDS}
            for doc in items[1:]
        ]
        return {"latest": items[0], "archives": archives}

    def list_bulletins(self) -> list[dict]:
        self._require(BULLETINS)
        return self._find(BULLETINS)

    def save_bulletin(
        self,
        *,
        lang: str,
        pdf: str,
        title: Optional[str] = None,
        date: Optional[str] = None,
        bulletin_id: Optional[str] = None,
    ) -> dict:
        new_id = bulletin_id or f"{lang}-{epoch_ms()}"
        record = {
            "id": new_id,
            "lang": lang,
            "title": title or "",
            "pdf": pdf,
            "date": date or utc_today(),
            "createdAt": utc_now_iso(),
        }
        saved = self._require(BULLETINS).upsert(BULLETINS, {"id": new_id}, record)
        return BULLETINS.shape(saved)

    def delete_bulletin(self, bulletin_id: str) -> None:
        self._delete(BULLETINS, bulletin_id)

    # -------------------------- leaderboard --------------------------
    def leaderboard(
        self, game: Optional[str] = None, limit: Optional[int] = None
    ) -> list[dict]:
        filter_ = enum_filter("game", game, GAMES)
        return self._find(LEADERBOARD, filter_, limit=clamp_limit(limit))

    def submit_score(self, *, game: str, nickname: str, score: float) -> dict:
        record = {
            "id": f"lb-{epoch_ms()}-{_random_suffix()}",
            "game": game,
            "nickname": nickname,
            "score": score,
            "createdAt": utc_now_iso(),
        }
        saved = self._require(LEADERBOARD).insert(LEADERBOARD, record)
        return LEADERBOARD.shape(saved)

    # -------------------------- health --------------------------
    def health(self) -> dict:
        if isinstance(self.store, MongoDocumentStore):
            db_name = self.store.ping()
            return {
                "connected": True,
                "provider": self.provider,
                "db": db_name,
                "count": self.store.count(PROJECTS),
            }
        return {
            "connected": False,
            "provider": self.provider,
            "message": "MONGODB_URI not set",
            "count": self.local_files.count(PROJECTS),
        }


def build_repository(
    *,
    mongo_uri: Optional[str],
    mongo_db: str,
    data_dir: Path | str,
    local_entities: set[str],
    project_file_fallback: bool,
    gallery_dir: Path | str | None,
) -> ContentRepository:
    """Pick the backend once: MongoDB when a connection string is set, else JSON files."""
    local_files = JsonDocumentStore(data_dir, {PROJECTS.name} | set(local_entities))
    store: DocumentStore
    if mongo_uri:
        store = MongoDocumentStore(mongo_uri, mongo_db)
    else:
        logger.info("No MongoDB connection string; using JSON files in %s", data_dir)
        store = local_files
    return ContentRepository(
        store,
        local_files=local_files,
        project_file_fallback=project_file_fallback,
        gallery_dir=gallery_dir,
    )
