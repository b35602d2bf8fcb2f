"""Archive layout helpers — project-root discovery and manifest allow-list.

Learner archives are frequently zipped from the parent directory, so the whole
project sits under one wrapper folder. When every entry shares one top-level
directory, that directory is treated as the project root.
"""

import posixpath
import re

_IGNORED_PREFIXES = ("__MACOSX/",)
_IGNORED_BASENAMES = frozenset({".DS_Store", "Thumbs.db"})

_MANIFEST_FILES = frozenset({"package.json", "angular.json"})
_MANIFEST_PATTERN = re.compile(
    r"^(vite|next|nuxt|webpack)\.config\.(js|mjs|cjs|ts|mts|cts)$"
)


def is_ignored(name: str) -> bool:
    """Return True for OS metadata entries that are never part of a project."""
    if name.startswith(_IGNORED_PREFIXES):
        return True
    return posixpath.basename(name) in _IGNORED_BASENAMES


def is_unsafe(name: str) -> bool:
    """Return True if the entry would escape the extraction root."""
    if name.startswith("/") or "\\" in name or re.match(r"^[A-Za-z]:", name):
        return True
    return ".." in name.split("/")


def project_root_prefix(entries: list[str]) -> str:
    """Return the single wrapper directory shared by all entries ("" when none)."""
    if not entries:
        return ""
    heads = {name.split("/", 1)[0] for name in entries}
    if len(heads) != 1:
        return ""
    head = heads.pop()
    # a lone top-level file is not a wrapper directory
    if any("/" not in name for name in entries):
        return ""
    return f"{head}/"


def relative_to_root(name: str, prefix: str) -> str:
    return name[len(prefix) :] if prefix and name.startswith(prefix) else name


def is_manifest_path(relative: str) -> bool:
    """Manifest-like files are only read at the project root."""
    if "/" in relative:
        return False
    return relative in _MANIFEST_FILES or bool(_MANIFEST_PATTERN.match(relative))
