"""
Pydantic schemas for the club site API.

Request models carry the validation rules; failures are rendered as 400
responses by the handler registered in ``clubsite.app``.
"""

from __future__ import annotations

import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from clubsite.records import BULLETIN_LANGS, GAMES, PROJECT_TYPES

NICKNAME_MAX_LENGTH = 24
NICKNAME_MIN_LENGTH = 2
MAX_SCORE = 1_000_000

Number = Union[int, float]


def _required_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("is required")
    return value


def _one_of(value: str, allowed: frozenset, name: str) -> str:
    candidate = value.strip().lower()
    if candidate not in allowed:
        raise ValueError(f"{name} must be one of {','.join(sorted(allowed))}")
    return candidate


# -------------------------- projects --------------------------
class ProjectCreate(BaseModel):
    id: Optional[str] = None
    type: str
    title: str
    description: str
    image: str

    @field_validator("title", "description", "image")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("type")
    @classmethod
    def _project_type(cls, value: str) -> str:
        return _one_of(value, PROJECT_TYPES, "type")


class ProjectUpdate(BaseModel):
    id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None

    @field_validator("type")
    @classmethod
    def _project_type(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return _one_of(value, PROJECT_TYPES, "type")

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True, exclude={"id"})


class Project(BaseModel):
    id: Optional[str] = None
    type: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None


class ProjectResponse(BaseModel):
    project: Project


class ProjectsResponse(BaseModel):
    projects: list[Project]


# -------------------------- highlights --------------------------
class HighlightCreate(BaseModel):
    id: Optional[str] = None
    src: str
    title: Optional[str] = None
    order: Optional[int] = None

    @field_validator("src")
    @classmethod
    def _src(cls, value: str) -> str:
        return _required_text(value)


class HighlightUpdate(BaseModel):
    id: Optional[str] = None
    src: Optional[str] = None
    title: Optional[str] = None
    order: Optional[int] = None

    @field_validator("src")
    @classmethod
    def _src(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else None

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True, exclude={"id"})


class Highlight(BaseModel):
    id: Optional[str] = None
    src: Optional[str] = None
    title: Optional[str] = None
    order: Optional[int] = None


class HighlightResponse(BaseModel):
    highlight: Highlight


class HighlightsResponse(BaseModel):
    highlights: list[Highlight]


class ImagesResponse(BaseModel):
    images: list[str]


# -------------------------- power stones --------------------------
class PowerStoneSave(BaseModel):
    id: Optional[str] = None
    slot: int = Field(..., ge=1, le=6)
    src: str
    title: Optional[str] = None

    @field_validator("src")
    @classmethod
    def _src(cls, value: str) -> str:
        return _required_text(value)


class PowerStone(BaseModel):
    id: Optional[str] = None
    slot: Optional[int] = None
    src: Optional[str] = None
    title: Optional[str] = None


class PowerStoneResponse(BaseModel):
    stone: PowerStone


class PowerStonesResponse(BaseModel):
    stones: list[PowerStone]


# -------------------------- bulletins --------------------------
class BulletinSave(BaseModel):
    id: Optional[str] = None
    lang: str
    title: Optional[str] = None
    pdf: str
    date: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")

    @field_validator("lang")
    @classmethod
    def _lang(cls, value: str) -> str:
        return _one_of(value, BULLETIN_LANGS, "lang")

    @field_validator("pdf")
    @classmethod
    def _pdf(cls, value: str) -> str:
        return _required_text(value)

    @field_validator("date")
    @classmethod
    def _calendar_date(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            try:
                datetime.date.fromisoformat(value)
            except ValueError:
                raise ValueError("date must be a real YYYY-MM-DD date")
        return value


class Bulletin(BaseModel):
    id: Optional[str] = None
    lang: Optional[str] = None
    title: Optional[str] = None
    pdf: Optional[str] = None
    date: Optional[str] = None
    createdAt: Optional[str] = None


class BulletinArchive(BaseModel):
    id: Optional[str] = None
    title: Optional[str] = None
    date: Optional[str] = None
    pdf: Optional[str] = None
    lang: Optional[str] = None


class BulletinResponse(BaseModel):
    bulletin: Bulletin


class BulletinsResponse(BaseModel):
    bulletins: list[Bulletin]


class LatestBulletinsResponse(BaseModel):
    latest: Bulletin
    archives: list[BulletinArchive]


# -------------------------- leaderboard --------------------------
class ScoreSubmit(BaseModel):
    game: str
    nickname: str
    score: float = Field(..., ge=0, le=MAX_SCORE)

    @field_validator("game")
    @classmethod
    def _game(cls, value: str) -> str:
        candidate = value.strip().lower()
        if candidate not in GAMES:
            raise ValueError("invalid game")
        return candidate

    @field_validator("nickname")
    @classmethod
    def _nickname(cls, value: str) -> str:
        name = value.strip()[:NICKNAME_MAX_LENGTH]
        if len(name) < NICKNAME_MIN_LENGTH:
            raise ValueError("invalid nickname")
        return name

    def score_value(self) -> Number:
        return int(self.score) if self.score.is_integer() else self.score


class LeaderboardEntry(BaseModel):
    id: Optional[str] = None
    game: Optional[str] = None
    nickname: Optional[str] = None
    score: Optional[Number] = None
    createdAt: Optional[str] = None


class LeaderboardEntryResponse(BaseModel):
    entry: LeaderboardEntry


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]


# -------------------------- shared --------------------------
class DeleteRequest(BaseModel):
    id: Optional[str] = None


class DeleteResponse(BaseModel):
    deleted: Literal[True]
    id: str


class ImportResponse(BaseModel):
    imported: int
    provider: str
    total: int


class UploadResponse(BaseModel):
    url: str
