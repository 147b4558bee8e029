"""Unit tests for folder bookkeeping and browsing."""

import json

import pytest

from envx_ui.services.folders import (
    FolderError,
    FolderStore,
    list_directory,
    parent_directory,
    search_folders,
    validate_folder,
)


@pytest.fixture
def store(tmp_path):
    return FolderStore(tmp_path / "data" / "config.json", max_recent=3)


def _dirs(root, *names):
    paths = []
    for name in names:
        path = root / name
        path.mkdir(parents=True)
        paths.append(path)
    return paths


# --- validation and browsing ---

class TestBrowse:
    def test_validate_resolves(self, tmp_path):
        (sub,) = _dirs(tmp_path, "a")
        assert validate_folder(str(sub / ".." / "a")) == sub.resolve()

    def test_validate_missing(self, tmp_path):
        with pytest.raises(FolderError, match="does not exist"):
            validate_folder(tmp_path / "missing")

    def test_validate_file(self, tmp_path):
        (tmp_path / "f.txt").write_text("")
        with pytest.raises(FolderError, match="not a directory"):
            validate_folder(tmp_path / "f.txt")

    def test_list_directory(self, tmp_path):
        _dirs(tmp_path, "beta", "Alpha", ".hidden")
        (tmp_path / "file.txt").write_text("")
        names = [f["name"] for f in list_directory(tmp_path)]
        assert names == ["Alpha", "beta"]

    def test_list_directory_invalid(self, tmp_path):
        with pytest.raises(FolderError):
            list_directory(tmp_path / "missing")

    def test_parent_directory(self, tmp_path):
        (sub,) = _dirs(tmp_path, "child")
        assert parent_directory(sub) == str(tmp_path.resolve())

    def test_parent_of_root(self):
        assert parent_directory("/") is None


class TestSearch:
    def test_ranking(self, tmp_path):
        _dirs(tmp_path, "work/api-server", "api", "x/my-api", "apis")
        names = [r["name"] for r in search_folders("API", roots=[tmp_path])]
        assert names[0] == "api"
        assert set(names) == {"api", "apis", "api-server", "my-api"}
        assert names.index("my-api") > names.index("apis")

    def test_skips_hidden_and_vendor(self, tmp_path):
        _dirs(tmp_path, ".git/target", "node_modules/target", "src/target")
        results = search_folders("target", roots=[tmp_path])
        assert [r["path"] for r in results] == [str(tmp_path / "src" / "target")]

    def test_depth_limit(self, tmp_path):
        _dirs(tmp_path, "a/b/c/d/deep")
        assert search_folders("deep", roots=[tmp_path], max_depth=2) == []
        assert len(search_folders("deep", roots=[tmp_path], max_depth=4)) == 1

    def test_max_results(self, tmp_path):
        _dirs(tmp_path, *[f"proj{i}" for i in range(10)])
        assert len(search_folders("proj", roots=[tmp_path], max_results=4)) == 4

    def test_missing_roots_ignored(self, tmp_path):
        assert search_folders("x", roots=[tmp_path / "missing"]) == []


# --- FolderStore ---

class TestFolderStore:
    def test_empty(self, store):
        assert store.saved_folders() == []
        assert store.recent_folders() == []

    def test_add_saved(self, store, tmp_path):
        (folder,) = _dirs(tmp_path, "proj")
        store.add_saved(folder)
        store.add_saved(folder)
        assert store.saved_folders() == [str(folder.resolve())]
        assert store.folder_info(folder).is_saved is True

    def test_add_saved_invalid(self, store, tmp_path):
        with pytest.raises(FolderError, match="Invalid folder path"):
            store.add_saved(tmp_path / "missing")

    def test_remove_saved(self, store, tmp_path):
        (folder,) = _dirs(tmp_path, "proj")
        store.add_saved(folder)
        store.remove_saved(folder)
        assert store.saved_folders() == []

    def test_saved_skips_deleted_folders(self, store, tmp_path):
        (folder,) = _dirs(tmp_path, "gone")
        store.add_saved(folder)
        folder.rmdir()
        assert store.saved_folders() == []

    def test_recent_most_recent_first_and_capped(self, store, tmp_path):
        folders = _dirs(tmp_path, "a", "b", "c", "d")
        for folder in folders:
            store.add_recent(folder)
        store.add_recent(folders[1])
        names = [f.name for f in store.recent_folders()]
        assert names == ["b", "d", "c"]

    def test_recent_ignores_missing(self, store, tmp_path):
        store.add_recent(tmp_path / "missing")
        assert store.recent_folders() == []

    def test_config_file_format(self, store, tmp_path):
        (folder,) = _dirs(tmp_path, "proj")
        store.add_recent(folder)
        data = json.loads(store.config_path.read_text())
        assert data["recent_folders"][0]["path"] == str(folder.resolve())
        assert data["recent_folders"][0]["name"] == "proj"
        assert "last_opened" in data["recent_folders"][0]

    def test_corrupt_config_treated_as_empty(self, store):
        store.config_path.parent.mkdir(parents=True)
        store.config_path.write_text("{not json")
        assert store.saved_folders() == []

    def test_invalid_entries_ignored(self, store, tmp_path):
        (folder,) = _dirs(tmp_path, "proj")
        store.config_path.parent.mkdir(parents=True)
        store.config_path.write_text(json.dumps({
            "saved_folders": [None, 5, str(folder)],
            "recent_folders": [{"path": 5}, "oops", {"path": str(folder), "name": "proj"}],
        }))
        assert store.saved_folders() == [str(folder)]
        assert [f.path for f in store.recent_folders()] == [str(folder)]
        store.add_recent(folder)
        store.add_saved(folder)
        assert store.folder_info(folder).is_saved is True

    def test_folder_info(self, store, tmp_path):
        (folder,) = _dirs(tmp_path, "proj")
        info = store.folder_info(folder)
        assert info.as_dict() == {"path": str(folder.resolve()), "name": "proj", "is_saved": False}
