"""Directory listing rows and HTML rendering."""

from __future__ import annotations

import html
import logging
import os
import posixpath
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from urllib.parse import quote

from config import TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)

KIB = 1024
MIB = KIB * 1024
GIB = MIB * 1024


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    display_name: str
    is_directory: bool
    size_bytes: int | None
    last_modified: datetime
    link_href: str


def format_size(size: int) -> str:
    if size < KIB:
        return f"{size} B"
    if size < MIB:
        return f"{size / KIB:.2f} KB"
    if size < GIB:
        return f"{size / MIB:.2f} MB"
    return f"{size / GIB:.2f} GB"


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def join_request_path(request_path: str, name: str) -> str:
    """Join a child name onto a URL path and collapse duplicate slashes."""
    return posixpath.normpath(posixpath.join(request_path or "/", name)).replace("//", "/")


def parent_request_path(request_path: str) -> str:
    """Lexical parent of a URL path; ``/a/b/`` and ``/a/b`` both give ``/a``."""
    stripped = request_path.rstrip("/")
    if not stripped:
        return "/"
    return posixpath.dirname(stripped) or "/"


def read_entries(directory: Path, request_path: str) -> list[DirectoryEntry]:
    """Read the immediate children of ``directory`` in directory order.

    ``OSError`` from opening the directory propagates. Children whose
    metadata cannot be read, or whose names are not valid UTF-8, are skipped.
    """
    entries: list[DirectoryEntry] = []
    with os.scandir(directory) as iterator:
        for child in iterator:
            try:
                child.name.encode("utf-8")
            except UnicodeEncodeError:
                logger.debug("Skipping entry with undecodable name %r", child.path)
                continue
            try:
                is_directory = child.is_dir()
                child_stat = child.stat()
            except OSError:
                logger.debug("Skipping unreadable entry %s", child.path)
                continue

            entries.append(
                DirectoryEntry(
                    display_name=f"{child.name}/" if is_directory else child.name,
                    is_directory=is_directory,
                    size_bytes=None if is_directory else child_stat.st_size,
                    last_modified=datetime.fromtimestamp(child_stat.st_mtime),
                    link_href=join_request_path(request_path, child.name),
                )
            )
    return entries


_PAGE_HEAD = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>File Server - {title}</title>
    <link rel="preconnect" href="https://fonts.googleapis.com">
    <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>
    <link href="https://fonts.googleapis.com/css2?family=Recursive:wght@300..1000&display=swap" rel="stylesheet">
    <style>
    * {{ font-family: 'Recursive', sans-serif; }}
    </style>
    <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-gray-100 text-gray-900 min-h-screen p-6">
    <div class="max-w-5xl mx-auto">
        <h1 class="text-3xl font-bold mb-6">Directory: {heading}</h1>
        <div class="bg-white shadow-md rounded-lg overflow-hidden">
            <table class="w-full">
                <thead class="bg-blue-600 text-white">
                    <tr>
                        <th class="py-3 px-4 text-left">Name</th>
                        <th class="py-3 px-4 text-left">Size</th>
                        <th class="py-3 px-4 text-left">Last Modified</th>
                    </tr>
                </thead>
                <tbody>
"""

_PAGE_TAIL = """                </tbody>
            </table>
        </div>
    </div>
</body>
</html>
"""

_ROW = """                    <tr class="hover:bg-gray-100">
                        <td class="py-2 px-4"><a href="{href}" class="flex items-center text-blue-500 hover:underline">{icon}{name}</a></td>
                        <td class="py-2 px-4">{size}</td>
                        <td class="py-2 px-4">{modified}</td>
                    </tr>
"""

_ICON_PATHS = {
    "parent": (
        "M3 12l2-2m0 0l7-7 7 7M5 10v10a1 1 0 001 1h3m10-11l2 2m-2-2v10a1 1 0 01-1 1h-3"
        "m-6 0a1 1 0 001-1v-4a1 1 0 011-1h2a1 1 0 011 1v4a1 1 0 001 1m-6 0h6"
    ),
    "directory": "M3 7v10a2 2 0 002 2h14a2 2 0 002-2V9a2 2 0 00-2-2h-6l-2-2H5a2 2 0 00-2 2z",
    "file": (
        "M7 21h10a2 2 0 002-2V9.414a1 1 0 00-.293-.707l-5.414-5.414"
        "A1 1 0 0012.586 3H7a2 2 0 00-2 2v14a2 2 0 002 2z"
    ),
}


def _icon(kind: str) -> str:
    return (
        '<svg class="w-5 h-5 mr-2" fill="none" stroke="currentColor" viewBox="0 0 24 24">'
        '<path stroke-linecap="round" stroke-linejoin="round" stroke-width="2" '
        f'd="{_ICON_PATHS[kind]}"></path></svg>'
    )


def _row(href: str, icon: str, name: str, size: str, modified: str) -> str:
    return _ROW.format(
        href=html.escape(quote(href, safe="/"), quote=True),
        icon=_icon(icon),
        name=html.escape(name),
        size=html.escape(size),
        modified=html.escape(modified),
    )


def render_listing(
    request_path: str,
    heading: str,
    entries: list[DirectoryEntry],
    *,
    include_parent: bool,
) -> str:
    """Render one listing page: optional parent row first, then ``entries``."""
    parts = [_PAGE_HEAD.format(title=html.escape(request_path), heading=html.escape(heading))]
    if include_parent:
        parts.append(_row(parent_request_path(request_path), "parent", "..", "-", "-"))

    for entry in entries:
        size = "-" if entry.size_bytes is None else format_size(entry.size_bytes)
        parts.append(
            _row(
                entry.link_href,
                "directory" if entry.is_directory else "file",
                entry.display_name,
                size,
                format_timestamp(entry.last_modified),
            )
        )

    parts.append(_PAGE_TAIL)
    return "".join(parts)
