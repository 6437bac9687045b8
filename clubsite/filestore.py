"""
JSON-file persistence used when no document database is configured.

Each file-backed entity owns one file, ``<data_dir>/<entity>.json``, holding
``{"<entity>": [...records]}``. Writes are not locked: concurrent writers
race and the last write wins.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, Optional

from clubsite.errors import BackendUnavailable, ConflictError
from clubsite.records import EntitySpec, SortSpec, matches

logger = logging.getLogger(__name__)


class LocalFileStore:
    """Reads and writes a single JSON document."""

    def __init__(self, path: Path | str, section: str):
        self.path = Path(path)
        self.section = section

    def read(self) -> dict:
        """Return the stored document, or an empty one when missing or corrupt."""
        try:
            with self.path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return {self.section: []}
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            return {self.section: []}
        if not isinstance(document, dict) or not isinstance(
            document.get(self.section), list
        ):
            return {self.section: []}
        return document

    def write(self, document: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8"
        )

    def records(self) -> list[dict]:
        return [item for item in self.read()[self.section] if isinstance(item, dict)]

    def replace_records(self, records: list[dict]) -> None:
        document = self.read()
        document[self.section] = records
        self.write(document)


def _sort_value(value):
    # None sorts first, as it does in MongoDB.
    return (value is not None, value if value is not None else 0)


def sort_records(records: Iterable[dict], sort: SortSpec) -> list[dict]:
    """Multi-key sort honoring per-key direction (1 asc, -1 desc)."""
    items = list(records)
    for name, direction in reversed(sort):
        items.sort(key=lambda doc: _sort_value(doc.get(name)), reverse=direction < 0)
    return items


def _check_unique(
    spec: EntitySpec, records: list[dict], candidate: dict, skip: int = -1
) -> None:
    """Enforce the entity's single-field unique indexes, as MongoDB would."""
    for index in spec.indexes:
        if not index.unique or len(index.keys) != 1:
            continue
        name = index.keys[0][0]
        value = candidate.get(name)
        if value is None:
            continue
        for position, doc in enumerate(records):
            if position != skip and doc.get(name) == value:
                raise ConflictError()


class JsonDocumentStore:
    """DocumentStore implementation over per-entity JSON files."""

    provider = "json"

    def __init__(self, data_dir: Path | str, entities: Iterable[str]):
        self.data_dir = Path(data_dir)
        self.entities = set(entities)

    def file_for(self, spec: EntitySpec) -> LocalFileStore:
        if not self.supports(spec):
            raise BackendUnavailable()
        return LocalFileStore(self.data_dir / f"{spec.name}.json", spec.name)

    def supports(self, spec: EntitySpec) -> bool:
        return spec.name in self.entities

    def find(
        self,
        spec: EntitySpec,
        filter_: Optional[dict] = None,
        *,
        sort: Optional[SortSpec] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        items = [doc for doc in self.file_for(spec).records() if matches(doc, filter_ or {})]
        if sort:
            items = sort_records(items, sort)
        if limit:
            items = items[:limit]
        return items

    def find_one(self, spec: EntitySpec, filter_: dict) -> Optional[dict]:
        for doc in self.file_for(spec).records():
            if matches(doc, filter_):
                return doc
        return None

    def upsert(self, spec: EntitySpec, key_filter: dict, record: dict) -> dict:
        store = self.file_for(spec)
        records = store.records()
        for index, doc in enumerate(records):
            if matches(doc, key_filter):
                merged = {**doc, **record}
                _check_unique(spec, records, merged, skip=index)
                records[index] = merged
                store.replace_records(records)
                return merged
        created = {**key_filter, **record}
        _check_unique(spec, records, created)
        records.append(created)
        store.replace_records(records)
        return created

    def update(
        self, spec: EntitySpec, key_filter: dict, changes: dict
    ) -> Optional[dict]:
        store = self.file_for(spec)
        records = store.records()
        for index, doc in enumerate(records):
            if matches(doc, key_filter):
                merged = {**doc, **changes}
                _check_unique(spec, records, merged, skip=index)
                records[index] = merged
                store.replace_records(records)
                return merged
        return None

    def insert(self, spec: EntitySpec, record: dict) -> dict:
        store = self.file_for(spec)
        records = store.records()
        _check_unique(spec, records, record)
        records.append(dict(record))
        store.replace_records(records)
        return dict(record)

    def delete(self, spec: EntitySpec, key_filter: dict) -> bool:
        store = self.file_for(spec)
        records = store.records()
        kept = [doc for doc in records if not matches(doc, key_filter)]
        if len(kept) == len(records):
            return False
        store.replace_records(kept)
        return True

    def count(self, spec: EntitySpec, filter_: Optional[dict] = None) -> int:
        return sum(1 for doc in self.file_for(spec).records() if matches(doc, filter_ or {}))
