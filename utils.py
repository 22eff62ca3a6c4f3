"""Utility helpers shared across server modules."""

import mimetypes
from pathlib import Path

from path_resolver import is_within


def get_content_type(file_path: Path) -> str:
    content_type, _encoding = mimetypes.guess_type(file_path.name)
    return content_type or "application/octet-stream"


def display_path(path: Path, home: Path | None = None) -> str:
    """Render ``path`` as ``~/...`` when it lives under the home directory.

    ``home`` is canonicalized so it compares against already-resolved paths.
    """
    absolute = Path(path).absolute()
    try:
        home = (Path.home() if home is None else home).resolve()
    except (KeyError, OSError, RuntimeError):
        return str(absolute)

    if not is_within(absolute, home):
        return str(absolute)

    relative = absolute.relative_to(home)
    if relative == Path("."):
        return "~/"
    return f"~/{relative.as_posix()}"
