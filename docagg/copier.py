"""Copies a repository's markdown into the output tree with edit URLs injected."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from .failsafe import INDEX_FILENAME, build_index_stub, has_index
from .frontmatter import EDIT_URL_KEY, decode, encode, merge_default
from .logging import get_logger
from .models import OutputDocument, RepoSpec, SourceDocument
from .paths import DEFAULT_EDIT_HOST, compute_edit_url
from .scanner import DocumentScanner, convention_root


class AggregationError(RuntimeError):
    """Raised for I/O failures that make the output tree untrustworthy."""

    def __init__(self, message: str, *, repo: str | None = None, path: Path | None = None) -> None:
        details = []
        if repo:
            details.append(f"repo={repo}")
        if path is not None:
            details.append(f"path={path}")
        suffix = f" ({', '.join(details)})" if details else ""
        super().__init__(f"{message}{suffix}")
        self.repo = repo
        self.path = path


@dataclass
class CopyResult:
    """Outcome of copying one repository."""

    repo: str
    output_dir: Path
    documents: List[OutputDocument] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    synthesized_index: bool = False
    skipped: bool = False


class ContentCopier:
    """Selects, annotates and writes the documents of a single repository."""

    def __init__(
        self,
        scanner: DocumentScanner | None = None,
        *,
        edit_host: str = DEFAULT_EDIT_HOST,
    ) -> None:
        self.scanner = scanner or DocumentScanner()
        self.edit_host = edit_host
        self.logger = get_logger("copier")

    def copy_repo_docs(self, spec: RepoSpec, output_root: Path) -> List[str]:
        """Copy ``spec``'s documents under ``output_root`` and return any warnings."""
        return self.copy_repo(spec, output_root).warnings

    def copy_repo(self, spec: RepoSpec, output_root: Path) -> CopyResult:
        output_dir = Path(output_root) / spec.short_name
        result = CopyResult(repo=spec.repo_identifier, output_dir=output_dir)

        try:
            documents = self.scanner.scan(spec)
        except FileNotFoundError:
            message = f"[skip] {spec.repo_identifier} has no {convention_root(spec)}"
            self.logger.warning(message)
            result.warnings.append(message)
            result.skipped = True
            return result
        except OSError as exc:
            raise AggregationError(
                f"Failed to list documents: {exc}",
                repo=spec.repo_identifier,
                path=convention_root(spec),
            ) from exc

        self.logger.debug("Selected %d documents from %s", len(documents), spec.repo_identifier)
        self._ensure_dir(output_dir, spec)

        for document in documents:
            try:
                written = self._copy_document(spec, document, output_dir, result)
            except FileNotFoundError as exc:
                self._warn_missing(spec, exc, result)
                continue
            if written is not None:
                result.documents.append(written)

        if not has_index(output_dir):
            index_path = output_dir / INDEX_FILENAME
            try:
                self._write(index_path, build_index_stub(spec, host=self.edit_host), spec)
            except FileNotFoundError as exc:
                self._warn_missing(spec, exc, result)
            else:
                result.synthesized_index = True
                self.logger.info("Added fallback index for %s", spec.repo_identifier)

        return result

    def _warn_missing(self, spec: RepoSpec, exc: FileNotFoundError, result: CopyResult) -> None:
        message = f"[skip] {spec.repo_identifier}: {exc.filename or exc} not found"
        self.logger.warning(message)
        result.warnings.append(message)

    def _copy_document(
        self,
        spec: RepoSpec,
        document: SourceDocument,
        output_dir: Path,
        result: CopyResult,
    ) -> OutputDocument | None:
        try:
            raw = document.path.read_text(encoding="utf-8-sig")
        except FileNotFoundError:
            message = f"[skip] {spec.repo_identifier}: {document.path} disappeared before it was read"
            self.logger.warning(message)
            result.warnings.append(message)
            return None
        except UnicodeDecodeError:
            message = f"[skip] {spec.repo_identifier}: {document.path} is not UTF-8 text"
            self.logger.warning(message)
            result.warnings.append(message)
            return None
        except OSError as exc:
            raise AggregationError(
                f"Failed to read document: {exc}", repo=spec.repo_identifier, path=document.path
            ) from exc

        metadata, body = decode(raw)
        edit_url = compute_edit_url(spec, document.relative_path, host=self.edit_host)
        metadata = merge_default(metadata, EDIT_URL_KEY, edit_url)

        destination = output_dir / document.relative_path
        self._ensure_dir(destination.parent, spec)
        self._write(destination, encode(metadata, body), spec)
        self.logger.debug("Wrote %s", destination)
        return OutputDocument(
            path=destination,
            relative_path=document.relative_path,
            metadata=metadata,
        )

    @staticmethod
    def _ensure_dir(directory: Path, spec: RepoSpec) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except FileNotFoundError:
            raise
        except OSError as exc:
            raise AggregationError(
                f"Failed to create directory: {exc}", repo=spec.repo_identifier, path=directory
            ) from exc

    @staticmethod
    def _write(path: Path, content: str, spec: RepoSpec) -> None:
        try:
            path.write_text(content, encoding="utf-8", newline="\n")
        except FileNotFoundError:
            raise
        except OSError as exc:
            raise AggregationError(
                f"Failed to write document: {exc}", repo=spec.repo_identifier, path=path
            ) from exc


__all__ = ["AggregationError", "ContentCopier", "CopyResult"]
