"""Core data models shared across docagg components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple, Union

_REPO_IDENTIFIER = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")

DEFAULT_BRANCH = "main"
DEFAULT_NESTED_DOC_DIRS: Tuple[str, ...] = ("docs", "documentation")


@dataclass(frozen=True)
class DedicatedSubdir:
    """Documentation lives in a single subdirectory of the repository."""

    name: str = "docs"


@dataclass(frozen=True)
class RootFiles:
    """Documentation is loose markdown at the repository root.

    ``nested_doc_dirs`` names the conventional directories that are also
    collected when they exist.
    """

    nested_doc_dirs: Tuple[str, ...] = DEFAULT_NESTED_DOC_DIRS


DocsConvention = Union[DedicatedSubdir, RootFiles]


@dataclass(frozen=True)
class RepoSpec:
    """Static descriptor for one source repository."""

    repo_identifier: str
    source_root: Path
    docs_convention: DocsConvention = field(default_factory=DedicatedSubdir)
    branch_name: str = DEFAULT_BRANCH

    def __post_init__(self) -> None:
        if not _REPO_IDENTIFIER.match(self.repo_identifier):
            raise ValueError(
                f"Repository identifier must look like 'namespace/name': {self.repo_identifier!r}"
            )
        if not isinstance(self.docs_convention, (DedicatedSubdir, RootFiles)):
            raise TypeError(f"Unsupported docs convention: {self.docs_convention!r}")
        if not self.branch_name:
            raise ValueError(f"Branch name for {self.repo_identifier} must not be empty")
        object.__setattr__(self, "source_root", Path(self.source_root))

    @property
    def namespace(self) -> str:
        return self.repo_identifier.split("/", 1)[0]

    @property
    def short_name(self) -> str:
        return self.repo_identifier.split("/", 1)[1]


@dataclass
class SourceDocument:
    """A selected markdown file, relative to its convention root."""

    path: Path
    relative_path: str


@dataclass
class OutputDocument:
    """An annotated document written into the output tree."""

    path: Path
    relative_path: str
    metadata: Dict[str, Any] = field(default_factory=dict)
