from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from envx_ui.config import get_settings
from envx_ui.main import create_app
from envx_ui.services.dotenvx import DotenvxClient

ENV_CONTENT = "# App settings\nAPP_NAME=demo\n\nGREETING=\"hello world\"\nAPI_TOKEN=encrypted:BDx1abc\n"
PRODUCTION_CONTENT = "DATABASE_URL=postgres://db/prod\n"
KEYS_CONTENT = (
    "#/------------------!DOTENV_PRIVATE_KEYS!-------------------/\n"
    "DOTENV_PRIVATE_KEY=\"abc123\"\n"
    "DOTENV_PRIVATE_KEY_PRODUCTION='def456'\n"
)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point settings at a throwaway data dir and reset the cache around each test."""
    monkeypatch.setenv("ENVX_UI_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ENVX_UI_AUTH_ENABLED", "false")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def project_dir(tmp_path):
    project = tmp_path / "project"
    project.mkdir()
    (project / ".env").write_text(ENV_CONTENT)
    (project / ".env.production").write_text(PRODUCTION_CONTENT)
    (project / ".env.keys").write_text(KEYS_CONTENT)
    (project / "README.md").write_text("not an env file\n")
    return project


@pytest.fixture
def mock_dotenvx():
    client = MagicMock(spec=DotenvxClient)
    client.decrypt_file.return_value = {"API_TOKEN": "s3cret"}
    return client


@pytest.fixture
def app(project_dir, mock_dotenvx):
    application = create_app(project_dir)
    application.state.dotenvx = mock_dotenvx
    return application


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def client_with_auth(project_dir, mock_dotenvx, monkeypatch):
    monkeypatch.setenv("ENVX_UI_AUTH_ENABLED", "true")
    monkeypatch.setenv("ENVX_UI_AUTH_USERNAME", "admin")
    monkeypatch.setenv("ENVX_UI_AUTH_PASSWORD", "secret123")
    get_settings.cache_clear()
    application = create_app(project_dir)
    application.state.dotenvx = mock_dotenvx
    transport = ASGITransport(app=application)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
