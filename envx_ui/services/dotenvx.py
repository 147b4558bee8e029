"""Encryption via the external dotenvx CLI.

Commands are always built as argument lists and run without a shell.
Key material reaches the child process only through its environment.
"""

import json
import logging
import os
import re
import shlex
import subprocess
from pathlib import Path

from envx_ui.models import EntryLine
from envx_ui.services.env_file import KEYS_FILENAME, is_encrypted, read_env_file

logger = logging.getLogger(__name__)

_PRIVATE_KEY_PATTERN = re.compile(r"^DOTENV_PRIVATE_KEY(?:_(.+))?$")
_PUBLIC_KEY_PATTERN = re.compile(r"^DOTENV_PUBLIC_KEY(?:_(.+))?$")


class DotenvxError(Exception):
    """The dotenvx CLI could not be run or returned an error."""


def _read_keys(directory: Path, pattern: re.Pattern) -> dict[str, str]:
    """Map environment name -> key from ``.env.keys`` entries matching ``pattern``."""
    keys_path = Path(directory) / KEYS_FILENAME
    if not keys_path.exists():
        return {}
    try:
        doc = read_env_file(keys_path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read %s: %s", keys_path, e)
        return {}
    keys = {}
    for line in doc.lines:
        if not isinstance(line, EntryLine):
            continue
        m = pattern.match(line.key)
        if m:
            env = (m.group(1) or "default").lower()
            keys[env] = line.value
    return keys


def read_keys(directory: Path) -> dict[str, str]:
    """Private keys by environment (``DOTENV_PRIVATE_KEY_PRODUCTION`` -> ``production``)."""
    return _read_keys(directory, _PRIVATE_KEY_PATTERN)


def read_public_keys(directory: Path) -> dict[str, str]:
    return _read_keys(directory, _PUBLIC_KEY_PATTERN)


def key_for_file(filename: str, keys: dict[str, str]) -> str | None:
    """Pick the private key matching an env file name.

    ``.env`` uses the default (or development) key, ``.env.<name>`` the key
    for ``<name>``.
    """
    if filename == ".env":
        return keys.get("default") or keys.get("development")
    if filename.startswith(".env."):
        return keys.get(filename[len(".env."):].lower())
    return None


def private_key_variable(filename: str) -> str:
    """Environment variable dotenvx reads the private key for ``filename`` from."""
    if filename.startswith(".env.") and filename != ".env.keys":
        suffix = re.sub(r"[^A-Za-z0-9]", "_", filename[len(".env."):]).upper()
        return f"DOTENV_PRIVATE_KEY_{suffix}"
    return "DOTENV_PRIVATE_KEY"


class DotenvxClient:
    def __init__(self, command: str = "npx @dotenvx/dotenvx", timeout: float = 30.0):
        self.command = shlex.split(command)
        self.timeout = timeout

    def _run(self, args: list[str], cwd: Path, env: dict[str, str] | None = None) -> str:
        child_env = dict(os.environ)
        if env:
            child_env.update(env)
        try:
            result = subprocess.run(
                [*self.command, *args],
                cwd=str(cwd),
                env=child_env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise DotenvxError(f"dotenvx command not found: {self.command[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise DotenvxError(f"dotenvx timed out after {self.timeout:g}s") from e
        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip() or f"exit code {result.returncode}"
            raise DotenvxError(detail)
        return result.stdout

    def encrypt_file(self, path: Path, cwd: Path) -> None:
        """Encrypt every plain value in ``path`` in place."""
        try:
            self._run(["encrypt", "-f", str(path)], cwd)
        except DotenvxError as e:
            logger.warning("Encrypting %s failed: %s", path, e)
            raise DotenvxError(f"Encryption failed: {e}") from e
        logger.info("Encrypted %s", path)

    def decrypt_file(self, path: Path, cwd: Path, private_key: str | None = None) -> dict[str, str] | None:
        """Decrypted values of ``path`` without touching the file.

        Returns None when decryption is not possible; callers then show
        the values as still encrypted.
        """
        env = {private_key_variable(Path(path).name): private_key} if private_key else None
        try:
            output = self._run(["get", "-f", str(path), "--format", "json"], cwd, env=env)
            values = json.loads(output)
        except (DotenvxError, ValueError) as e:
            logger.warning("Decrypting %s failed: %s", path, e)
            return None
        if not isinstance(values, dict):
            return None
        return {str(k): str(v) for k, v in values.items()}


def merge_decrypted(entries, decrypted: dict[str, str] | None) -> list[dict]:
    """Attach a display value to each entry.

    Plain values show as-is; encrypted ones show the decrypted text or
    None when it is unavailable.
    """
    merged = []
    for entry in entries:
        plain = decrypted.get(entry.key) if decrypted else None
        if not plain:
            plain = None if is_encrypted(entry.value) else entry.value
        merged.append({**entry.as_dict(), "decrypted_value": plain})
    return merged
