import logging
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from envx_ui.config import get_settings
from envx_ui.dependencies import get_cwd, get_folder_store, set_cwd
from envx_ui.services import env_file
from envx_ui.services.folders import (
    FolderError,
    FolderStore,
    list_directory,
    parent_directory,
    search_folders,
    validate_folder,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/folder")

MIN_QUERY_LENGTH = 2


class FolderBody(BaseModel):
    path: str | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("")
async def current_folder(
    cwd: Path = Depends(get_cwd),
    store: FolderStore = Depends(get_folder_store),
):
    return store.folder_info(cwd).as_dict()


@router.post("/change")
async def change_folder(
    request: Request,
    body: FolderBody,
    store: FolderStore = Depends(get_folder_store),
):
    if not body.path:
        return _error(400, "Path is required")
    try:
        cwd = validate_folder(body.path)
    except FolderError as e:
        return _error(400, str(e))

    set_cwd(request, cwd)
    store.add_recent(cwd)
    logger.info("Switched folder to %s", cwd)
    return {
        "success": True,
        "cwd": str(cwd),
        "files": env_file.scan_env_files(cwd),
        "has_keys": env_file.has_keys_file(cwd),
        "folder_info": store.folder_info(cwd).as_dict(),
    }


@router.get("/saved")
async def saved_folders(store: FolderStore = Depends(get_folder_store)):
    return {"folders": store.saved_folders()}


@router.post("/saved")
async def save_folder(
    body: FolderBody,
    cwd: Path = Depends(get_cwd),
    store: FolderStore = Depends(get_folder_store),
):
    try:
        saved = store.add_saved(body.path or cwd)
    except FolderError as e:
        return _error(400, str(e))
    return {"success": True, "path": saved}


@router.delete("/saved")
async def unsave_folder(body: FolderBody, store: FolderStore = Depends(get_folder_store)):
    if not body.path:
        return _error(400, "Path is required")
    store.remove_saved(body.path)
    return {"success": True}


@router.get("/recent")
async def recent_folders(store: FolderStore = Depends(get_folder_store)):
    return {"folders": [f.as_dict() for f in store.recent_folders()]}


@router.get("/browse")
async def browse(path: str = ""):
    target = path or str(Path.home())
    try:
        folders = list_directory(target)
    except FolderError as e:
        return _error(400, str(e))
    return {
        "current": str(Path(target).expanduser().resolve()),
        "parent": parent_directory(target),
        "folders": folders,
    }


@router.get("/search")
async def search(q: str = ""):
    if len(q) < MIN_QUERY_LENGTH:
        return {"results": []}
    settings = get_settings()
    results = search_folders(
        q,
        max_results=settings.search_max_results,
        max_depth=settings.search_max_depth,
    )
    return {"results": results}
