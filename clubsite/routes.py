"""
HTTP routes for the club site API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse

from clubsite.auth import require_admin
from clubsite.config import Settings, get_settings
from clubsite.dependencies import get_pdf_proxy, get_repository, get_upload_storage
from clubsite.errors import (
    StoreError,
    UploadNotConfigured,
    UploadRejected,
    UpstreamError,
    ValidationError,
)
from clubsite.gallery import gallery_images
from clubsite.pdf_proxy import PdfProxy
from clubsite.records import DEFAULT_BULLETIN_LANG
from clubsite.repository import ContentRepository
from clubsite.schemas import (
    BulletinResponse,
    BulletinSave,
    BulletinsResponse,
    DeleteRequest,
    DeleteResponse,
    HighlightCreate,
    HighlightResponse,
    HighlightsResponse,
    HighlightUpdate,
    ImagesResponse,
    ImportResponse,
    LatestBulletinsResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    PowerStoneResponse,
    PowerStoneSave,
    PowerStonesResponse,
    ProjectCreate,
    ProjectResponse,
    ProjectsResponse,
    ProjectUpdate,
    ScoreSubmit,
    UploadResponse,
)
from clubsite.uploads import (
    MAX_UPLOAD_BYTES,
    UploadStorage,
    check_image,
    sanitize_filename,
)

logger = logging.getLogger(__name__)

router = APIRouter()
admin = [Depends(require_admin)]

NO_STORE = {"Cache-Control": "no-store"}


def _require_id(payload: DeleteRequest | ProjectUpdate | HighlightUpdate) -> str:
    if not payload.id:
        raise ValidationError("id required")
    return payload.id


def _parse_limit(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw is not None else None
    except ValueError:
        return None


# -------------------------- health & gallery --------------------------
@router.get("/health/db")
def health_db(repo: ContentRepository = Depends(get_repository)):
    try:
        return repo.health()
    except StoreError as exc:
        return JSONResponse(
            status_code=500,
            content={"connected": False, "provider": repo.provider, "error": exc.message},
        )


@router.get("/gallery", response_model=ImagesResponse)
def gallery(settings: Settings = Depends(get_settings)):
    return ImagesResponse(images=gallery_images(settings.gallery_dir))


# -------------------------- projects --------------------------
@router.get("/projects", response_model=ProjectsResponse)
def list_projects(
    response: Response,
    type_: Optional[str] = Query(None, alias="type"),
    repo: ContentRepository = Depends(get_repository),
):
    response.headers.update(NO_STORE)
    return {"projects": repo.list_projects(type_)}


@router.post(
    "/projects", response_model=ProjectResponse, status_code=201, dependencies=admin
)
def create_project(
    payload: ProjectCreate, repo: ContentRepository = Depends(get_repository)
):
    project = repo.create_project(
        type_=payload.type,
        title=payload.title,
        description=payload.description,
        image=payload.image,
        project_id=payload.id,
    )
    return {"project": project}


@router.post("/projects/update", response_model=ProjectResponse, dependencies=admin)
def update_project_fallback(
    payload: ProjectUpdate,
    response: Response,
    repo: ContentRepository = Depends(get_repository),
):
    project_id = _require_id(payload)
    response.headers.update(NO_STORE)
    return {"project": repo.update_project(project_id, payload.changes())}


@router.post("/projects/delete", response_model=DeleteResponse, dependencies=admin)
def delete_project_fallback(
    payload: DeleteRequest,
    response: Response,
    repo: ContentRepository = Depends(get_repository),
):
    project_id = _require_id(payload)
    repo.delete_project(project_id)
    response.headers.update(NO_STORE)
    return DeleteResponse(deleted=True, id=project_id)


@router.api_route(
    "/projects/import",
    methods=["GET", "POST"],
    response_model=ImportResponse,
    dependencies=admin,
)
def import_projects(repo: ContentRepository = Depends(get_repository)):
    return repo.import_local_projects()


@router.put("/projects/{project_id}", response_model=ProjectResponse, dependencies=admin)
def update_project(
    project_id: str,
    payload: ProjectUpdate,
    repo: ContentRepository = Depends(get_repository),
):
    return {"project": repo.update_project(project_id, payload.changes())}


@router.delete(
    "/projects/{project_id}", response_model=DeleteResponse, dependencies=admin
)
def delete_project(
    project_id: str,
    response: Response,
    repo: ContentRepository = Depends(get_repository),
):
    repo.delete_project(project_id)
    response.headers.update(NO_STORE)
    return DeleteResponse(deleted=True, id=project_id)


# -------------------------- highlights --------------------------
@router.get("/highlights", response_model=ImagesResponse)
def highlight_images(repo: ContentRepository = Depends(get_repository)):
    return ImagesResponse(images=repo.highlight_images())


@router.get("/highlights/admin", response_model=HighlightsResponse, dependencies=admin)
def list_highlights(repo: ContentRepository = Depends(get_repository)):
    return {"highlights": repo.list_highlights()}


@router.post(
    "/highlights", response_model=HighlightResponse, status_code=201, dependencies=admin
)
def create_highlight(
    payload: HighlightCreate, repo: ContentRepository = Depends(get_repository)
):
    highlight = repo.create_highlight(
        src=payload.src,
        title=payload.title,
        order=payload.order,
        highlight_id=payload.id,
    )
    return {"highlight": highlight}


@router.post("/highlights/update", response_model=HighlightResponse, dependencies=admin)
def update_highlight_fallback(
    payload: HighlightUpdate, repo: ContentRepository = Depends(get_repository)
):
    highlight_id = _require_id(payload)
    return {"highlight": repo.update_highlight(highlight_id, payload.changes())}


@router.post("/highlights/delete", response_model=DeleteResponse, dependencies=admin)
def delete_highlight_fallback(
    payload: DeleteRequest, repo: ContentRepository = Depends(get_repository)
):
    highlight_id = _require_id(payload)
    repo.delete_highlight(highlight_id)
    return DeleteResponse(deleted=True, id=highlight_id)


@router.put(
    "/highlights/{highlight_id}", response_model=HighlightResponse, dependencies=admin
)
def update_highlight(
    highlight_id: str,
    payload: HighlightUpdate,
    repo: ContentRepository = Depends(get_repository),
):
    return {"highlight": repo.update_highlight(highlight_id, payload.changes())}


@router.delete("/highlights/{highlight_id}", status_code=204, dependencies=admin)
def delete_highlight(
    highlight_id: str, repo: ContentRepository = Depends(get_repository)
):
    repo.delete_highlight(highlight_id)
    return Response(status_code=204)


# -------------------------- power stones --------------------------
@router.get("/power-stones", response_model=PowerStonesResponse)
def power_stones(repo: ContentRepository = Depends(get_repository)):
    return {"stones": repo.power_stones()}


@router.get(
    "/power-stones/admin", response_model=PowerStonesResponse, dependencies=admin
)
def list_power_stones(repo: ContentRepository = Depends(get_repository)):
    return {"stones": repo.list_power_stones()}


@router.post(
    "/power-stones",
    response_model=PowerStoneResponse,
    status_code=201,
    dependencies=admin,
)
def save_power_stone(
    payload: PowerStoneSave, repo: ContentRepository = Depends(get_repository)
):
    stone = repo.save_power_stone(
        slot=payload.slot, src=payload.src, title=payload.title, stone_id=payload.id
    )
    return {"stone": stone}


@router.post("/power-stones/delete", response_model=DeleteResponse, dependencies=admin)
def delete_power_stone_fallback(
    payload: DeleteRequest, repo: ContentRepository = Depends(get_repository)
):
    stone_id = _require_id(payload)
    repo.delete_power_stone(stone_id)
    return DeleteResponse(deleted=True, id=stone_id)


@router.delete("/power-stones/{stone_id}", status_code=204, dependencies=admin)
def delete_power_stone(stone_id: str, repo: ContentRepository = Depends(get_repository)):
    repo.delete_power_stone(stone_id)
    return Response(status_code=204)


# -------------------------- bulletins --------------------------
@router.get("/bulletins", response_model=LatestBulletinsResponse)
def bulletins(
    lang: str = Query(DEFAULT_BULLETIN_LANG),
    repo: ContentRepository = Depends(get_repository),
):
    return repo.bulletins_for(lang)


@router.get("/bulletins/admin", response_model=BulletinsResponse, dependencies=admin)
def list_bulletins(repo: ContentRepository = Depends(get_repository)):
    return {"bulletins": repo.list_bulletins()}


@router.post(
    "/bulletins", response_model=BulletinResponse, status_code=201, dependencies=admin
)
def save_bulletin(
    payload: BulletinSave, repo: ContentRepository = Depends(get_repository)
):
    bulletin = repo.save_bulletin(
        lang=payload.lang,
        pdf=payload.pdf,
        title=payload.title,
        date=payload.date,
        bulletin_id=payload.id,
    )
    return {"bulletin": bulletin}


@router.post("/bulletins/delete", response_model=DeleteResponse, dependencies=admin)
def delete_bulletin_fallback(
    payload: DeleteRequest, repo: ContentRepository = Depends(get_repository)
):
    bulletin_id = _require_id(payload)
    repo.delete_bulletin(bulletin_id)
    return DeleteResponse(deleted=True, id=bulletin_id)


@router.delete("/bulletins/{bulletin_id}", status_code=204, dependencies=admin)
def delete_bulletin(bulletin_id: str, repo: ContentRepository = Depends(get_repository)):
    repo.delete_bulletin(bulletin_id)
    return Response(status_code=204)


# -------------------------- leaderboard --------------------------
@router.get("/leaderboard", response_model=LeaderboardResponse)
def leaderboard(
    game: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    repo: ContentRepository = Depends(get_repository),
):
    return {"entries": repo.leaderboard(game, _parse_limit(limit))}


@router.post("/leaderboard", response_model=LeaderboardEntryResponse, status_code=201)
def submit_score(
    payload: ScoreSubmit, repo: ContentRepository = Depends(get_repository)
):
    entry = repo.submit_score(
        game=payload.game, nickname=payload.nickname, score=payload.score_value()
    )
    return {"entry": entry}


# -------------------------- upload --------------------------
@router.post("/upload", response_model=UploadResponse, dependencies=admin)
async def upload(
    file: Optional[UploadFile] = File(None),
    storage: Optional[UploadStorage] = Depends(get_upload_storage),
):
    if file is None or not file.filename:
        raise UploadRejected()
    if storage is None:
        raise UploadNotConfigured()
    data = await file.read(MAX_UPLOAD_BYTES + 1)
    check_image(file.filename, file.content_type, len(data))
    name = sanitize_filename(file.filename)
    url = await run_in_threadpool(storage.save, name, data, file.content_type or "")
    logger.info("Upload %s stored as %s", file.filename, url)
    return UploadResponse(url=url)


# -------------------------- pdf proxy --------------------------
@router.get("/pdf-proxy")
def pdf_proxy(
    url: Optional[str] = Query(None),
    proxy: PdfProxy = Depends(get_pdf_proxy),
):
    try:
        upstream = proxy.open(proxy.validate_url(url))
    except UpstreamError as exc:
        return PlainTextResponse(exc.message, status_code=exc.status_code)
    return StreamingResponse(
        proxy.iter_body(upstream),
        media_type="application/pdf",
        headers={"Cache-Control": "public, max-age=3600"},
    )
