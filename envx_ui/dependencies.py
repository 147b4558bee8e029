"""Per-request context shared by the routers.

The working directory lives in the browser session, so each session
navigates independently. Without one the server's launch directory is used.
"""

from pathlib import Path

from fastapi import Request

from envx_ui.services.dotenvx import DotenvxClient
from envx_ui.services.folders import FolderStore

CWD_SESSION_KEY = "cwd"


def get_cwd(request: Request) -> Path:
    cwd = request.session.get(CWD_SESSION_KEY)
    if cwd and Path(cwd).is_dir():
        return Path(cwd)
    return request.app.state.initial_cwd


def set_cwd(request: Request, path: Path) -> None:
    request.session[CWD_SESSION_KEY] = str(path)


def get_folder_store(request: Request) -> FolderStore:
    return request.app.state.folder_store


def get_dotenvx(request: Request) -> DotenvxClient:
    return request.app.state.dotenvx
