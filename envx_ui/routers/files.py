import logging
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from envx_ui.dependencies import get_cwd, get_dotenvx
from envx_ui.services import env_file
from envx_ui.services.dotenvx import (
    DotenvxClient,
    DotenvxError,
    key_for_file,
    merge_decrypted,
    read_keys,
    read_public_keys,
)
from envx_ui.services.env_file import EnvFileError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


class NewFileBody(BaseModel):
    filename: str | None = None


class NewKeyBody(BaseModel):
    key: str | None = None
    value: str | None = None


class UpdateKeyBody(BaseModel):
    value: str | None = None


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _resolve(cwd: Path, filename: str) -> Path | None:
    """Path of an editable env file in ``cwd``, or None if the name is not allowed."""
    if not env_file.is_env_filename(filename):
        return None
    return cwd / filename


def _edit(cwd: Path, filename: str, mutate) -> JSONResponse | None:
    """Load, mutate and persist one file. Returns an error response on failure."""
    path = _resolve(cwd, filename)
    if path is None:
        return _error(400, "Invalid file")
    try:
        doc = env_file.read_env_file(path)
        mutate(doc)
        env_file.write_env_file(path, doc)
    except FileNotFoundError:
        return _error(404, f"File {filename} not found")
    except UnicodeDecodeError:
        return _error(400, f"File {filename} is not valid UTF-8")
    except EnvFileError as e:
        return _error(400, str(e))
    except OSError as e:
        logger.warning("Could not update %s: %s", path, e)
        return _error(500, str(e))
    return None


@router.get("/files")
async def list_files(cwd: Path = Depends(get_cwd)):
    return {
        "files": env_file.scan_env_files(cwd),
        "has_keys": env_file.has_keys_file(cwd),
        "cwd": str(cwd),
    }


@router.post("/files")
async def create_file(body: NewFileBody, cwd: Path = Depends(get_cwd)):
    filename = (body.filename or "").strip()
    if _resolve(cwd, filename) is None:
        return _error(400, "Invalid filename")
    try:
        env_file.create_env_file(cwd, filename)
    except FileExistsError:
        return _error(400, "File already exists")
    except OSError as e:
        return _error(500, str(e))
    return {"success": True, "filename": filename}


@router.get("/files/{filename}")
async def read_file(
    filename: str,
    cwd: Path = Depends(get_cwd),
    dotenvx: DotenvxClient = Depends(get_dotenvx),
):
    path = _resolve(cwd, filename)
    if path is None:
        return _error(400, "Invalid file")
    try:
        doc = env_file.read_env_file(path)
    except FileNotFoundError:
        return _error(404, f"File {filename} not found")
    except UnicodeDecodeError:
        return _error(400, f"File {filename} is not valid UTF-8")
    except OSError as e:
        return _error(500, str(e))

    entries = env_file.list_entries(doc)
    private_key = key_for_file(filename, read_keys(cwd))
    decrypted = None
    if private_key and any(entry.encrypted for entry in entries):
        decrypted = dotenvx.decrypt_file(path, cwd, private_key)

    return {
        "filename": filename,
        "entries": merge_decrypted(entries, decrypted),
        "has_private_key": private_key is not None,
    }


@router.post("/files/{filename}/keys")
async def add_key(filename: str, body: NewKeyBody, cwd: Path = Depends(get_cwd)):
    key = body.key
    if not key:
        return _error(400, "Key is required")
    if not env_file.is_valid_key(key):
        return _error(
            400,
            "Invalid key format. Use alphanumeric and underscores, "
            "starting with letter or underscore.",
        )
    value = body.value or ""
    error = _edit(cwd, filename, lambda doc: env_file.add_entry(doc, key, value))
    if error:
        return error
    return {"success": True, "key": key, "value": value}


@router.put("/files/{filename}/keys/{key}")
async def update_key(filename: str, key: str, body: UpdateKeyBody, cwd: Path = Depends(get_cwd)):
    if body.value is None:
        return _error(400, "Value is required")
    value = body.value
    error = _edit(cwd, filename, lambda doc: env_file.update_entry(doc, key, value))
    if error:
        return error
    return {"success": True, "key": key, "value": value}


@router.delete("/files/{filename}/keys/{key}")
async def delete_key(filename: str, key: str, cwd: Path = Depends(get_cwd)):
    error = _edit(cwd, filename, lambda doc: env_file.delete_entry(doc, key))
    if error:
        return error
    return {"success": True, "key": key}


@router.post("/files/{filename}/encrypt")
async def encrypt_file(
    filename: str,
    cwd: Path = Depends(get_cwd),
    dotenvx: DotenvxClient = Depends(get_dotenvx),
):
    path = _resolve(cwd, filename)
    if path is None:
        return _error(400, "Invalid file")
    if not path.is_file():
        return _error(404, f"File {filename} not found")
    try:
        dotenvx.encrypt_file(path, cwd)
    except DotenvxError as e:
        return _error(500, str(e))
    return {"success": True, "message": "File encrypted successfully"}


@router.get("/keys")
async def keys_info(cwd: Path = Depends(get_cwd)):
    return {
        "has_keys_file": env_file.has_keys_file(cwd),
        "environments": sorted(read_keys(cwd)),
        "public_key_environments": sorted(read_public_keys(cwd)),
    }
