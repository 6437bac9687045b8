"""HTTP Basic guard for admin routes."""

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from clubsite.config import Settings, get_settings
from clubsite.errors import AuthError

ADMIN_REALM = "Admin"

_basic = HTTPBasic(realm=ADMIN_REALM, auto_error=False)


def credentials_match(
    credentials: Optional[HTTPBasicCredentials], settings: Settings
) -> bool:
    """True only when both admin values are configured and both match."""
    if credentials is None or not settings.admin_user or not settings.admin_pass:
        return False
    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), settings.admin_user.encode("utf-8")
    )
    pass_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), settings.admin_pass.encode("utf-8")
    )
    return user_ok and pass_ok


def require_admin(
    credentials: Optional[HTTPBasicCredentials] = Depends(_basic),
    settings: Settings = Depends(get_settings),
) -> str:
    if not credentials_match(credentials, settings):
        raise AuthError()
    return credentials.username
