import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .config import Settings
from .store import Store

basic_auth = HTTPBasic(realm="Admin Area")


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def verify_admin(
    credentials: Annotated[HTTPBasicCredentials, Depends(basic_auth)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> str:
    user_ok = secrets.compare_digest(credentials.username.encode(), settings.admin_user.encode())
    pass_ok = secrets.compare_digest(credentials.password.encode(), settings.admin_pass.encode())
    if not (user_ok and pass_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": 'Basic realm="Admin Area"'},
        )
    return credentials.username


StoreDep = Annotated[Store, Depends(get_store)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
AdminGuard = Annotated[str, Depends(verify_admin)]
