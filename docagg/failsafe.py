"""Fallback landing pages for repositories that ship no index document."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from .frontmatter import EDIT_URL_KEY, encode
from .models import RepoSpec
from .paths import DEFAULT_EDIT_HOST, repo_root_url

INDEX_FILENAME = "index.md"
INDEX_STEMS = ("index", "README")
INDEX_SUFFIXES = (".md", ".mdx")


def index_candidates() -> Iterable[str]:
    for stem in INDEX_STEMS:
        for suffix in INDEX_SUFFIXES:
            yield f"{stem}{suffix}"


def has_index(directory: Path) -> bool:
    """Return True when ``directory`` holds an index or README at its top level."""
    return any((directory / name).is_file() for name in index_candidates())


def build_index_stub(spec: RepoSpec, *, host: str = DEFAULT_EDIT_HOST) -> str:
    """Return a placeholder index pointing readers at the source repository."""
    body = (
        f"# {spec.short_name}\n\n"
        f"Project documentation aggregated from `{spec.repo_identifier}`.\n"
    )
    return encode({EDIT_URL_KEY: repo_root_url(spec, host=host)}, body)


__all__ = ["INDEX_FILENAME", "build_index_stub", "has_index", "index_candidates"]
