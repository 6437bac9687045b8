"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import threading
from typing import Optional

from clubsite.config import Settings, get_settings
from clubsite.pdf_proxy import PdfProxy
from clubsite.repository import ContentRepository, build_repository
from clubsite.uploads import LocalUploadStorage, S3UploadStorage, UploadStorage

_repository: ContentRepository | None = None
_upload_storage: UploadStorage | None = None
_pdf_proxy: PdfProxy | None = None
_lock = threading.Lock()


def get_repository() -> ContentRepository:
    """
    Return the process-wide repository; the backend is chosen on first call.
    """
    global _repository
    if _repository:
        return _repository
    with _lock:
        if _repository is None:
            settings = get_settings()
            _repository = build_repository(
                mongo_uri=settings.mongo_connection_string,
                mongo_db=settings.mongodb_db,
                data_dir=settings.data_dir,
                local_entities=settings.local_entities,
                project_file_fallback=settings.projects_file_fallback,
                gallery_dir=settings.gallery_dir,
            )
    return _repository


def _build_upload_storage(settings: Settings) -> Optional[UploadStorage]:
    if settings.blob_bucket:
        return S3UploadStorage(
            bucket=settings.blob_bucket,
            region=settings.blob_region or "",
            endpoint=settings.blob_endpoint or "",
            access_key_id=settings.blob_access_key_id or "",
            secret_access_key=settings.blob_secret_access_key or "",
            public_base_url=settings.blob_public_base_url or "",
        )
    if settings.local_uploads:
        return LocalUploadStorage(directory=settings.uploads_dir)
    return None


def get_upload_storage() -> Optional[UploadStorage]:
    """Object storage when a bucket is configured, else local disk if enabled."""
    global _upload_storage
    if _upload_storage:
        return _upload_storage
    with _lock:
        if _upload_storage is None:
            _upload_storage = _build_upload_storage(get_settings())
    return _upload_storage


def get_pdf_proxy() -> PdfProxy:
    global _pdf_proxy
    if _pdf_proxy:
        return _pdf_proxy
    with _lock:
        if _pdf_proxy is None:
            _pdf_proxy = PdfProxy(get_settings().pdf_allowed_hosts)
    return _pdf_proxy


def reset() -> None:
    """Drop cached singletons so the next request rebuilds them (tests)."""
    global _repository, _upload_storage, _pdf_proxy
    _repository = None
    _upload_storage = None
    _pdf_proxy = None
