"""Data models for the env file editor."""

from dataclasses import dataclass, field

ENCRYPTED_PREFIX = "encrypted:"


@dataclass
class BlankLine:
    raw: str


@dataclass
class CommentLine:
    raw: str


@dataclass
class UnknownLine:
    """A non-blank line with no ``=``. Kept verbatim."""

    raw: str


@dataclass
class EntryLine:
    """A ``KEY=value`` line.

    ``raw`` caches the last serialized form and is rewritten whenever the
    key or value changes, never edited on its own.
    """

    key: str
    value: str
    encrypted: bool = False
    raw: str = ""


Line = BlankLine | CommentLine | EntryLine | UnknownLine


@dataclass
class EnvDocument:
    """A parsed env file. Line order is significant and round-trips on save."""

    source_path: str = ""
    lines: list[Line] = field(default_factory=list)


@dataclass
class EnvEntry:
    """Projection of an entry line for display."""

    key: str
    value: str
    encrypted: bool

    def as_dict(self) -> dict:
        return {"key": self.key, "value": self.value, "encrypted": self.encrypted}


@dataclass
class FolderInfo:
    path: str
    name: str
    is_saved: bool = False

    def as_dict(self) -> dict:
        return {"path": self.path, "name": self.name, "is_saved": self.is_saved}


@dataclass
class RecentFolder:
    path: str
    name: str
    last_opened: str

    def as_dict(self) -> dict:
        return {"path": self.path, "name": self.name, "last_opened": self.last_opened}
