"""Candidate document discovery for each documentation convention."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterator, List

from .models import DedicatedSubdir, DocsConvention, RepoSpec, RootFiles, SourceDocument

MARKDOWN_SUFFIXES = frozenset({".md", ".mdx"})

_EXCLUDED_DIRS = {
    "node_modules",
    "__pycache__",
}


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def convention_root(spec: RepoSpec) -> Path:
    """Return the directory the repo's documents are taken relative to."""
    convention = spec.docs_convention
    if isinstance(convention, RootFiles):
        return spec.source_root
    if isinstance(convention, DedicatedSubdir):
        return spec.source_root / convention.name
    raise TypeError(f"Unsupported docs convention: {convention!r}")


def _iter_markdown(root: Path) -> Iterator[Path]:
    # Unreadable directories must abort the run, not vanish from the listing.
    def _raise(error: OSError) -> None:
        raise error

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = sorted(
            name for name in dirnames if not _is_hidden(name) and name not in _EXCLUDED_DIRS
        )
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            if _is_hidden(filename):
                continue
            path = current_dir / filename
            if is_markdown(path) and path.is_file():
                yield path


def _loose_files(root: Path) -> Iterator[Path]:
    for path in sorted(root.iterdir()):
        if _is_hidden(path.name):
            continue
        if path.is_file() and is_markdown(path):
            yield path


class DocumentScanner:
    """Selects the markdown files a repository contributes to the output tree."""

    def scan(self, spec: RepoSpec) -> List[SourceDocument]:
        """Return candidates sorted by output-relative path.

        Raises ``FileNotFoundError`` when the convention root does not exist.
        """
        root = convention_root(spec)
        if not root.is_dir():
            raise FileNotFoundError(f"Documentation root not found: {root}")
        selected = self._select(spec.docs_convention, root)
        return [selected[key] for key in sorted(selected)]

    def _select(self, convention: DocsConvention, root: Path) -> Dict[str, SourceDocument]:
        selected: Dict[str, SourceDocument] = {}
        if isinstance(convention, DedicatedSubdir):
            for path in _iter_markdown(root):
                self._add(selected, root, path)
            return selected
        if isinstance(convention, RootFiles):
            for path in _loose_files(root):
                self._add(selected, root, path)
            for name in convention.nested_doc_dirs:
                nested = root / name
                if not nested.is_dir():
                    continue
                for path in _iter_markdown(nested):
                    self._add(selected, root, path)
            return selected
        raise TypeError(f"Unsupported docs convention: {convention!r}")

    @staticmethod
    def _add(selected: Dict[str, SourceDocument], root: Path, path: Path) -> None:
        relative = path.relative_to(root).as_posix()
        # Both passes can reach the same file; it is only written once.
        selected.setdefault(relative, SourceDocument(path=path, relative_path=relative))


__all__ = ["DocumentScanner", "MARKDOWN_SUFFIXES", "convention_root", "is_markdown"]
