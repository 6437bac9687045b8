"""
Entity catalogue: natural keys, record shapes, sort orders and indexes.

Both storage backends read from these definitions so a record looks the same
whichever backend served it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

ASCENDING = 1
DESCENDING = -1

PROJECT_TYPES = frozenset({"flagship", "existing", "upcoming"})
BULLETIN_LANGS = frozenset({"ta", "en", "kn", "ml", "te"})
GAMES = frozenset({"snake", "whack", "flight", "memory"})

DEFAULT_BULLETIN_LANG = "ta"
BULLETIN_ARCHIVE_FIELDS = ("id", "title", "date", "pdf", "lang")

SortSpec = tuple[tuple[str, int], ...]


@dataclass(frozen=True)
class IndexSpec:
    keys: SortSpec
    unique: bool = False


@dataclass(frozen=True)
class EntitySpec:
    name: str
    collection: str
    key: str
    fields: tuple[str, ...]
    sort: SortSpec
    indexes: tuple[IndexSpec, ...] = ()
    defaults: dict = field(default_factory=dict)

    def shape(self, doc: dict) -> dict:
        """Project a stored document onto the public record fields."""
        return {name: doc.get(name, self.defaults.get(name)) for name in self.fields}


PROJECTS = EntitySpec(
    name="projects",
    collection="projects",
    key="id",
    fields=("id", "type", "title", "description", "image"),
    sort=(("title", ASCENDING),),
    indexes=(IndexSpec((("id", ASCENDING),), unique=True),),
)

HIGHLIGHTS = EntitySpec(
    name="highlights",
    collection="highlights",
    key="id",
    fields=("id", "src", "title", "order"),
    sort=(("order", ASCENDING), ("title", ASCENDING)),
    indexes=(
        IndexSpec((("id", ASCENDING),), unique=True),
        IndexSpec((("order", ASCENDING),)),
    ),
    defaults={"title": ""},
)

POWER_STONES = EntitySpec(
    name="power-stones",
    collection="powerstones",
    key="slot",
    fields=("id", "slot", "src", "title"),
    sort=(("slot", ASCENDING),),
    indexes=(
        IndexSpec((("id", ASCENDING),), unique=True),
        IndexSpec((("slot", ASCENDING),), unique=True),
    ),
    defaults={"title": ""},
)

BULLETINS = EntitySpec(
    name="bulletins",
    collection="bulletins",
    key="id",
    fields=("id", "lang", "title", "pdf", "date", "createdAt"),
    sort=(("date", DESCENDING), ("createdAt", DESCENDING)),
    indexes=(
        IndexSpec((("id", ASCENDING),), unique=True),
        IndexSpec((("lang", ASCENDING), ("date", DESCENDING))),
        IndexSpec((("createdAt", DESCENDING),)),
    ),
    defaults={"title": ""},
)

LEADERBOARD = EntitySpec(
    name="leaderboard",
    collection="leaderboard",
    key="id",
    fields=("id", "game", "nickname", "score", "createdAt"),
    sort=(("score", DESCENDING), ("createdAt", DESCENDING)),
    indexes=(
        IndexSpec((("game", ASCENDING), ("score", DESCENDING))),
        IndexSpec((("createdAt", DESCENDING),)),
        IndexSpec((("nickname", ASCENDING),)),
    ),
)

ENTITIES: dict[str, EntitySpec] = {
    spec.name: spec
    for spec in (PROJECTS, HIGHLIGHTS, POWER_STONES, BULLETINS, LEADERBOARD)
}


def enum_filter(name: str, value: Optional[str], allowed: frozenset) -> dict:
    """Equality filter on ``name``, or no filter when ``value`` is unrecognized."""
    candidate = (value or "").strip().lower()
    if candidate in allowed:
        return {name: candidate}
    return {}


def matches(doc: dict, filter_: dict[str, Any]) -> bool:
    return all(doc.get(name) == value for name, value in filter_.items())


def epoch_ms() -> int:
    return int(time.time() * 1000)


def utc_now_iso() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_today() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")
