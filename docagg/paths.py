"""Edit URL computation for aggregated documents."""

from __future__ import annotations

import posixpath
from pathlib import PurePath

from .models import DedicatedSubdir, RepoSpec, RootFiles

DEFAULT_EDIT_HOST = "github.com"


def _to_posix(path: str | PurePath) -> str:
    text = str(path).replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    return text.lstrip("/")


def source_relative_path(spec: RepoSpec, output_relative_path: str | PurePath) -> str:
    """Map a path inside the repo's output directory back to its source location."""
    relative = _to_posix(output_relative_path)
    convention = spec.docs_convention
    if isinstance(convention, RootFiles):
        return relative
    if isinstance(convention, DedicatedSubdir):
        subdir = _to_posix(convention.name).rstrip("/")
        if not subdir or subdir == ".":
            return relative
        return posixpath.join(subdir, relative)
    raise TypeError(f"Unsupported docs convention: {convention!r}")


def compute_edit_url(
    spec: RepoSpec,
    output_relative_path: str | PurePath,
    *,
    host: str = DEFAULT_EDIT_HOST,
) -> str:
    """Return the URL that opens the source file of a document for editing.

    The result only ever contains forward slashes, whatever the host OS.
    """
    source_path = source_relative_path(spec, output_relative_path)
    return f"https://{host}/{spec.repo_identifier}/edit/{spec.branch_name}/{source_path}"


def repo_root_url(spec: RepoSpec, *, host: str = DEFAULT_EDIT_HOST) -> str:
    """Return the repository landing page, used where no single file applies."""
    return f"https://{host}/{spec.repo_identifier}"


__all__ = ["DEFAULT_EDIT_HOST", "compute_edit_url", "repo_root_url", "source_relative_path"]
