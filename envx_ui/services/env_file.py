"""Read, edit and write .env files without losing comments or layout."""

import logging
import re
from pathlib import Path

from envx_ui.models import (
    ENCRYPTED_PREFIX,
    BlankLine,
    CommentLine,
    EntryLine,
    EnvDocument,
    EnvEntry,
    UnknownLine,
)

logger = logging.getLogger(__name__)

KEYS_FILENAME = ".env.keys"

ENV_FILE_NAMES = {
    ".env",
    ".env.local",
    ".env.development",
    ".env.staging",
    ".env.production",
    ".env.test",
}

_ENV_FILE_PATTERN = re.compile(r"^\.env\.[A-Za-z0-9_-]+$")
_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Characters that force a value to be written in double quotes
_QUOTE_TRIGGERS = (" ", "#", "\n", '"', "'")

NEW_FILE_CONTENT = "# Environment variables\n"


class EnvFileError(Exception):
    """Base class for env file editing errors."""


class DuplicateKeyError(EnvFileError):
    def __init__(self, key: str):
        super().__init__(f'Key "{key}" already exists')
        self.key = key


class KeyNotFoundError(EnvFileError):
    def __init__(self, key: str):
        super().__init__(f'Key "{key}" not found')
        self.key = key


def is_encrypted(value: str) -> bool:
    return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)


def _unquote(value: str) -> str:
    """Strip one pair of matching surrounding quotes, if present."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_line(raw: str):
    """Classify a single raw line."""
    trimmed = raw.strip()
    if not trimmed:
        return BlankLine(raw)
    if trimmed.startswith("#"):
        return CommentLine(raw)
    if "=" not in raw:
        return UnknownLine(raw)
    key, _, value = raw.partition("=")
    value = _unquote(value.strip())
    return EntryLine(key=key.strip(), value=value, encrypted=is_encrypted(value), raw=raw)


def parse(text: str, source_path: str = "") -> EnvDocument:
    """Parse env file text into an ordered document.

    Splits on ``\\n`` only, so a trailing newline becomes a final blank
    line and ``serialize`` reproduces it. Never raises on malformed input.
    """
    return EnvDocument(
        source_path=source_path,
        lines=[parse_line(raw) for raw in text.split("\n")],
    )


def format_entry(key: str, value: str) -> str:
    """Render ``KEY=value``, double-quoting values that need it.

    Only double quotes are ever emitted, so a value that was single-quoted
    in the source comes back double-quoted (or bare) after an edit.
    """
    if any(ch in value for ch in _QUOTE_TRIGGERS):
        escaped = value.replace('"', '\\"')
        return f'{key}="{escaped}"'
    return f"{key}={value}"


def serialize(doc: EnvDocument) -> str:
    parts = []
    for line in doc.lines:
        if isinstance(line, EntryLine):
            parts.append(format_entry(line.key, line.value))
        else:
            parts.append(line.raw)
    return "\n".join(parts)


# --- Entry accessors ---

def list_entries(doc: EnvDocument) -> list[EnvEntry]:
    """Entries in document order, duplicates included."""
    return [
        EnvEntry(key=line.key, value=line.value, encrypted=line.encrypted)
        for line in doc.lines
        if isinstance(line, EntryLine)
    ]


def _find_index(doc: EnvDocument, key: str) -> int | None:
    for i, line in enumerate(doc.lines):
        if isinstance(line, EntryLine) and line.key == key:
            return i
    return None


def find_entry(doc: EnvDocument, key: str) -> EntryLine | None:
    """Return the first entry with ``key``, or None."""
    index = _find_index(doc, key)
    return doc.lines[index] if index is not None else None


def is_valid_key(key: str) -> bool:
    return bool(_KEY_PATTERN.fullmatch(key))


# --- Mutators ---
# Each checks for existence before touching doc.lines, so a failed call
# leaves the document unchanged.

def add_entry(doc: EnvDocument, key: str, value: str) -> EntryLine:
    """Append a new entry at the end of the document."""
    if find_entry(doc, key) is not None:
        raise DuplicateKeyError(key)
    line = EntryLine(
        key=key,
        value=value,
        encrypted=is_encrypted(value),
        raw=format_entry(key, value),
    )
    doc.lines.append(line)
    return line


def update_entry(doc: EnvDocument, key: str, new_value: str) -> EntryLine:
    """Change an entry's value in place."""
    line = find_entry(doc, key)
    if line is None:
        raise KeyNotFoundError(key)
    line.value = new_value
    line.encrypted = is_encrypted(new_value)
    line.raw = format_entry(key, new_value)
    return line


def delete_entry(doc: EnvDocument, key: str) -> None:
    """Remove the entry line. Surrounding comments are left as they are."""
    index = _find_index(doc, key)
    if index is None:
        raise KeyNotFoundError(key)
    del doc.lines[index]


# --- File I/O ---

def read_env_file(path: Path) -> EnvDocument:
    """Load and parse a file.

    OSError and UnicodeDecodeError propagate to the caller.
    """
    path = Path(path)
    return parse(path.read_text(encoding="utf-8"), source_path=str(path))


def write_env_file(path: Path, doc: EnvDocument) -> None:
    path = Path(path)
    path.write_text(serialize(doc), encoding="utf-8")
    logger.info("Wrote %s", path)


def is_env_filename(name: str) -> bool:
    """True for a bare ``.env*`` file name that may be edited through the UI."""
    if not name or not name.startswith(".env") or name == KEYS_FILENAME:
        return False
    if "/" in name or "\\" in name or name in (".", ".."):
        return False
    return name in ENV_FILE_NAMES or bool(_ENV_FILE_PATTERN.fullmatch(name))


def scan_env_files(directory: Path) -> list[str]:
    """List env files in ``directory``: ``.env`` first, then alphabetical."""
    directory = Path(directory)
    files = []
    try:
        for child in directory.iterdir():
            if is_env_filename(child.name) and child.is_file():
                files.append(child.name)
    except OSError as e:
        logger.warning("Could not scan %s: %s", directory, e)
        return []
    return sorted(files, key=lambda name: (name != ".env", name.lower()))


def has_keys_file(directory: Path) -> bool:
    return (Path(directory) / KEYS_FILENAME).exists()


def create_env_file(directory: Path, name: str) -> Path:
    """Create a new env file with a header comment. Refuses to overwrite."""
    path = Path(directory) / name
    with path.open("x", encoding="utf-8") as f:
        f.write(NEW_FILE_CONTENT)
    logger.info("Created %s", path)
    return path
