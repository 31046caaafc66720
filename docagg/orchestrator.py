"""Aggregation run orchestration: rebuild the output tree one repository at a time."""

from __future__ import annotations

import enum
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .config import AggregatorConfig
from .copier import AggregationError, ContentCopier
from .logging import get_logger
from .postproc.mdx import fix_tree


class RunState(enum.Enum):
    NOT_STARTED = "not_started"
    CLEARING_OUTPUT = "clearing_output"
    PROCESSING_REPO = "processing_repo"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class AggregationReport:
    """Summary of a completed aggregation run."""

    output_root: Path
    warnings: List[str] = field(default_factory=list)
    processed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    documents_written: int = 0
    synthesized_indexes: List[str] = field(default_factory=list)
    mdx_fixed: List[Path] = field(default_factory=list)


class Orchestrator:
    """Drives the content copier over every configured repository."""

    def __init__(self, config: AggregatorConfig, copier: ContentCopier | None = None) -> None:
        self.config = config
        self.copier = copier or ContentCopier(edit_host=config.edit_host)
        self.logger = get_logger("orchestrator")
        self.state = RunState.NOT_STARTED
        self.current_index: Optional[int] = None

    def run(self) -> AggregationReport:
        """Rebuild the output tree from scratch.

        Missing repositories only produce warnings. Raises
        :class:`AggregationError` on any other filesystem failure, leaving
        ``state`` at ``ABORTED``.
        """
        output_root = Path(self.config.output_root)
        report = AggregationReport(output_root=output_root)
        try:
            self.state = RunState.CLEARING_OUTPUT
            self._reset_output(output_root)

            for index, spec in enumerate(self.config.repos):
                self.state = RunState.PROCESSING_REPO
                self.current_index = index
                self.logger.info("Aggregating %s", spec.repo_identifier)
                try:
                    result = self.copier.copy_repo(spec, output_root)
                except AggregationError:
                    raise
                except Exception as exc:
                    message = f"[skip] {spec.repo_identifier} failed: {exc}"
                    self.logger.warning(message)
                    report.warnings.append(message)
                    report.skipped.append(spec.short_name)
                    self._discard_partial(output_root / spec.short_name, spec.repo_identifier)
                    continue

                report.warnings.extend(result.warnings)
                if result.skipped:
                    report.skipped.append(spec.short_name)
                    continue
                report.processed.append(spec.short_name)
                report.documents_written += len(result.documents)
                if result.synthesized_index:
                    report.synthesized_indexes.append(spec.short_name)

            if self.config.fix_mdx:
                report.mdx_fixed = self._fix_mdx(output_root)
        except AggregationError:
            self.state = RunState.ABORTED
            raise

        self.state = RunState.DONE
        self.current_index = None
        self.logger.info(
            "Aggregation complete: %d repos, %d documents, %d warnings",
            len(report.processed),
            report.documents_written,
            len(report.warnings),
        )
        return report

    def _reset_output(self, output_root: Path) -> None:
        resolved = output_root.expanduser().resolve()
        cwd = Path.cwd().resolve()
        if resolved == cwd or resolved in cwd.parents:
            raise AggregationError("Refusing to clear the working directory or one of its parents", path=resolved)
        try:
            if output_root.is_dir() and not output_root.is_symlink():
                shutil.rmtree(output_root)
            elif output_root.exists() or output_root.is_symlink():
                output_root.unlink()
            output_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise AggregationError(f"Failed to reset output directory: {exc}", path=output_root) from exc
        self.logger.debug("Cleared output directory %s", output_root)

    def _discard_partial(self, repo_dir: Path, repo: str) -> None:
        """Remove whatever a failed repo managed to write; it has no index page."""
        try:
            if repo_dir.is_dir():
                shutil.rmtree(repo_dir)
        except OSError as exc:
            raise AggregationError(f"Failed to remove partial output: {exc}", repo=repo, path=repo_dir) from exc
        self.logger.debug("Removed partial output %s", repo_dir)

    def _fix_mdx(self, output_root: Path) -> List[Path]:
        try:
            return fix_tree(output_root)
        except OSError as exc:
            raise AggregationError(f"Failed to repair MDX code blocks: {exc}", path=output_root) from exc


@dataclass
class RunOutcome:
    """Exit status of a run with its report or the error that aborted it."""

    status: int
    report: Optional[AggregationReport] = None
    error: Optional[AggregationError] = None


def execute(config: AggregatorConfig, copier: ContentCopier | None = None) -> RunOutcome:
    """Run an aggregation and translate the outcome into a process exit status."""
    logger = get_logger("orchestrator")
    try:
        report = Orchestrator(config, copier=copier).run()
    except AggregationError as exc:
        logger.error("Aggregation failed: %s", exc)
        return RunOutcome(status=1, error=exc)
    return RunOutcome(status=0, report=report)


def run(config: AggregatorConfig, copier: ContentCopier | None = None) -> int:
    """Return 0 when the run completed (warnings allowed), 1 when it aborted."""
    return execute(config, copier=copier).status


__all__ = ["AggregationReport", "Orchestrator", "RunOutcome", "RunState", "execute", "run"]
