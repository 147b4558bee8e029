"""Saved/recent folder bookkeeping and directory browsing."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from envx_ui.models import FolderInfo, RecentFolder

logger = logging.getLogger(__name__)

# Directories never descended into while searching
SKIP_DIRS = {"node_modules", "vendor", "__pycache__", "venv"}

_SEARCH_ROOT_NAMES = (
    "projects", "Projects", "Documents", "Desktop", "dev",
    "Development", "code", "Code", "workspace", "Workspace",
)


class FolderError(Exception):
    """Invalid folder path or unreadable directory."""


def validate_folder(path: str | Path) -> Path:
    """Resolve ``path`` and make sure it is an existing directory."""
    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        raise FolderError("Folder does not exist")
    if not resolved.is_dir():
        raise FolderError("Path is not a directory")
    return resolved


def list_directory(path: str | Path) -> list[dict]:
    """Non-hidden subdirectories of ``path``, sorted by name."""
    directory = validate_folder(path)
    folders = []
    try:
        children = list(directory.iterdir())
    except OSError as e:
        raise FolderError(f"Cannot read directory: {e}") from e
    for child in children:
        if child.name.startswith("."):
            continue
        try:
            if child.is_dir():
                folders.append({"name": child.name, "path": str(child)})
        except OSError:
            continue  # permission denied
    folders.sort(key=lambda f: f["name"].lower())
    return folders


def parent_directory(path: str | Path) -> str | None:
    """Parent of ``path``, or None at the filesystem root."""
    resolved = Path(path).expanduser().resolve()
    parent = resolved.parent
    if parent == resolved:
        return None
    return str(parent)


def default_search_roots() -> list[Path]:
    home = Path.home()
    return [home / name for name in _SEARCH_ROOT_NAMES] + [home]


def _walk_matches(directory: Path, query: str, results: list, seen: set,
                  depth: int, max_depth: int, max_results: int) -> None:
    if depth > max_depth or len(results) >= max_results:
        return
    try:
        children = list(directory.iterdir())
    except OSError:
        return
    for child in children:
        if len(results) >= max_results:
            return
        name = child.name
        if name.startswith(".") or name in SKIP_DIRS:
            continue
        try:
            if not child.is_dir():
                continue
        except OSError:
            continue
        if query in name.lower() and child not in seen:
            seen.add(child)
            results.append({"name": name, "path": str(child), "parent": str(directory)})
        if depth < max_depth:
            _walk_matches(child, query, results, seen, depth + 1, max_depth, max_results)


def search_folders(query: str, roots: list[Path] | None = None,
                   max_results: int = 20, max_depth: int = 3) -> list[dict]:
    """Case-insensitive folder name search below ``roots``.

    Ranked by exact name match, then prefix match, then shorter path.
    """
    query = query.lower()
    if roots is None:
        roots = default_search_roots()
    results: list[dict] = []
    seen: set[Path] = set()
    for root in roots:
        if not root.is_dir():
            continue
        _walk_matches(root, query, results, seen, 0, max_depth, max_results)
        if len(results) >= max_results:
            break

    def rank(item: dict) -> tuple:
        name = item["name"].lower()
        return (name != query, not name.startswith(query), len(item["path"]))

    results.sort(key=rank)
    return results[:max_results]


class FolderStore:
    """Persists saved and recently opened folders in a JSON config file."""

    def __init__(self, config_path: Path, max_recent: int = 10):
        self.config_path = Path(config_path).expanduser()
        self.max_recent = max_recent

    def _load(self) -> dict:
        config = {"saved_folders": [], "recent_folders": []}
        if not self.config_path.exists():
            return config
        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Could not load %s: %s", self.config_path, e)
            return config
        if isinstance(data, dict):
            saved = data.get("saved_folders")
            recent = data.get("recent_folders")
            if isinstance(saved, list):
                config["saved_folders"] = [p for p in saved if isinstance(p, str)]
            if isinstance(recent, list):
                config["recent_folders"] = [
                    item for item in recent
                    if isinstance(item, dict) and isinstance(item.get("path"), str)
                ]
        return config

    def _save(self, config: dict) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(json.dumps(config, indent=2), encoding="utf-8")

    # --- Saved ---

    def saved_folders(self) -> list[str]:
        return [p for p in self._load()["saved_folders"] if Path(p).exists()]

    def add_saved(self, path: str | Path) -> str:
        try:
            resolved = validate_folder(path)
        except FolderError as e:
            raise FolderError("Invalid folder path") from e
        config = self._load()
        if str(resolved) not in config["saved_folders"]:
            config["saved_folders"].append(str(resolved))
            self._save(config)
        return str(resolved)

    def remove_saved(self, path: str | Path) -> None:
        resolved = str(Path(path).expanduser().resolve())
        config = self._load()
        if resolved in config["saved_folders"]:
            config["saved_folders"].remove(resolved)
            self._save(config)

    # --- Recent ---

    def recent_folders(self) -> list[RecentFolder]:
        recent = []
        for item in self._load()["recent_folders"]:
            if not isinstance(item, dict) or not Path(item.get("path", "")).exists():
                continue
            recent.append(RecentFolder(
                path=item["path"],
                name=item.get("name") or Path(item["path"]).name,
                last_opened=item.get("last_opened", ""),
            ))
        return recent[: self.max_recent]

    def add_recent(self, path: str | Path) -> None:
        resolved = Path(path).expanduser().resolve()
        if not resolved.exists():
            return
        config = self._load()
        recent = [
            item for item in config["recent_folders"]
            if isinstance(item, dict) and item.get("path") != str(resolved)
        ]
        recent.insert(0, {
            "path": str(resolved),
            "name": resolved.name,
            "last_opened": datetime.now(timezone.utc).isoformat(),
        })
        config["recent_folders"] = recent[: self.max_recent]
        self._save(config)

    def folder_info(self, path: str | Path) -> FolderInfo:
        resolved = Path(path).expanduser().resolve()
        return FolderInfo(
            path=str(resolved),
            name=resolved.name,
            is_saved=str(resolved) in self._load()["saved_folders"],
        )
