"""Request path resolution and root containment checks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from errors import MalformedPathError


@dataclass(frozen=True, slots=True)
class ResolvedRequest:
    requested_path: str
    absolute_target: Path
    permitted: bool


class PathResolver:
    """Maps decoded request paths onto a fixed root directory."""

    def __init__(self, root_directory: str | Path) -> None:
        self._root = Path(root_directory).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, request_path: str) -> ResolvedRequest:
        """Join, canonicalize and containment-check one request path.

        Raises MalformedPathError when the path cannot be normalized. A path
        that normalizes outside the root is returned with ``permitted=False``
        and its contents are never read here.
        """
        if not request_path.startswith("/"):
            raise MalformedPathError(f"Request path must be absolute: {request_path!r}")
        if "\x00" in request_path:
            raise MalformedPathError("Request path contains a NUL byte")

        relative_path = request_path.lstrip("/")
        try:
            candidate = (self._root / relative_path).resolve()
        except (OSError, RuntimeError, ValueError) as exc:
            raise MalformedPathError(f"Cannot normalize {request_path!r}") from exc

        return ResolvedRequest(
            requested_path=request_path,
            absolute_target=candidate,
            permitted=is_within(candidate, self._root),
        )


def is_within(path: Path, base: Path) -> bool:
    """Return True if ``path`` equals ``base`` or sits under it, segment-wise."""
    try:
        path.relative_to(base)
    except ValueError:
        return False
    return True
