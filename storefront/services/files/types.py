import mimetypes
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True, frozen=True)
class LocalFile:
    """A file picked on the client, held in memory until it is uploaded."""

    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    @classmethod
    def from_path(cls, path: str | Path, content_type: str | None = None) -> "LocalFile":
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(name=p.name, content_type=content_type or guessed or "application/octet-stream", data=p.read_bytes())
