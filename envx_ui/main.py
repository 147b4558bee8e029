import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware

from envx_ui.config import get_settings
from envx_ui.middleware import BasicAuthMiddleware, SecurityHeadersMiddleware
from envx_ui.services.dotenvx import DotenvxClient
from envx_ui.services.folders import FolderStore

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def create_app(cwd: Path | str | None = None) -> FastAPI:
    """Build the app rooted at ``cwd`` (defaults to the process directory)."""
    from envx_ui.routers import files, folders, pages

    settings = get_settings()
    initial_cwd = Path(cwd or Path.cwd()).expanduser().resolve()

    app = FastAPI(title="envx-ui", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.initial_cwd = initial_cwd
    app.state.folder_store = FolderStore(settings.config_path, settings.max_recent)
    app.state.dotenvx = DotenvxClient(settings.dotenvx_command, settings.dotenvx_timeout)

    # Last added runs first
    app.add_middleware(BasicAuthMiddleware, get_settings_fn=get_settings)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret_key,
        session_cookie="envx_ui_session",
        same_site="strict",
    )
    app.add_middleware(SecurityHeadersMiddleware)

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")
    app.include_router(pages.router)
    app.include_router(folders.router)
    app.include_router(files.router)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"error": str(exc) or type(exc).__name__})

    @app.get("/api/ping")
    async def ping():
        return {"status": "ok"}

    app.state.folder_store.add_recent(initial_cwd)
    logger.info("Serving env files from %s", initial_cwd)
    return app
