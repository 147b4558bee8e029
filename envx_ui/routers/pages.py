from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse

from envx_ui.dependencies import get_cwd, get_folder_store
from envx_ui.main import templates
from envx_ui.services import env_file
from envx_ui.services.folders import FolderStore

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    cwd: Path = Depends(get_cwd),
    store: FolderStore = Depends(get_folder_store),
):
    return templates.TemplateResponse(request, "index.html", {
        "files": env_file.scan_env_files(cwd),
        "has_keys": env_file.has_keys_file(cwd),
        "cwd": str(cwd),
        "folder_info": store.folder_info(cwd),
        "saved_folders": store.saved_folders(),
        "recent_folders": store.recent_folders(),
    })
