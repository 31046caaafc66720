"""Repairs markdown that MDX would misread as ES module syntax."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..frontmatter import Parsed, encode, parse
from ..logging import get_logger
from ..scanner import MARKDOWN_SUFFIXES

_ESM_PREFIXES = ("export ", "import ")
_SECTION_BREAKS = ("#", "⸻", "```")
_FENCE = "```"
_WRAP_LANGUAGE = "typescript"


def _starts_esm(line: str) -> bool:
    return line.strip().startswith(_ESM_PREFIXES)


def _ends_run(line: str) -> bool:
    return not line.strip() or line.startswith(_SECTION_BREAKS)


class MdxCodeBlockFixer:
    """Wraps bare ``import``/``export`` lines in fenced code blocks."""

    def find_issues(self, markdown: str) -> List[int]:
        """Return 1-based line numbers of unfenced ``import``/``export`` lines."""
        issues: List[int] = []
        in_code = False
        for number, line in enumerate(markdown.split("\n"), start=1):
            if line.startswith(_FENCE):
                in_code = not in_code
                continue
            if not in_code and _starts_esm(line):
                issues.append(number)
        return issues

    def fix(self, markdown: str) -> str:
        lines = markdown.split("\n")
        output: List[str] = []
        in_code = False
        index = 0
        while index < len(lines):
            line = lines[index]
            if line.startswith(_FENCE):
                in_code = not in_code
                output.append(line)
                index += 1
                continue
            if in_code or not _starts_esm(line):
                output.append(line)
                index += 1
                continue

            end = index + 1
            while end < len(lines) and not _ends_run(lines[end]):
                end += 1
            output.append(f"{_FENCE}{_WRAP_LANGUAGE}")
            output.extend(lines[index:end])
            output.append(_FENCE)
            index = end
        return "\n".join(output)


def fix_document(document: str, fixer: MdxCodeBlockFixer | None = None) -> str:
    """Apply the fixer to a document body, leaving its front matter intact."""
    fixer = fixer or MdxCodeBlockFixer()
    result = parse(document)
    if not isinstance(result, Parsed):
        return fixer.fix(document)
    fixed_body = fixer.fix(result.body)
    if fixed_body == result.body:
        return document
    return encode(result.metadata, fixed_body)


def fix_tree(root: Path, fixer: MdxCodeBlockFixer | None = None) -> List[Path]:
    """Rewrite every markdown file under ``root`` that needs fencing; return those paths."""
    logger = get_logger("postproc.mdx")
    fixer = fixer or MdxCodeBlockFixer()
    changed: List[Path] = []
    for path in sorted(Path(root).rglob("*")):
        if not path.is_file() or path.suffix.lower() not in MARKDOWN_SUFFIXES:
            continue
        try:
            original = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning("Skipping %s: not UTF-8 text", path)
            continue
        for line_number in fixer.find_issues(original):
            logger.warning("Unescaped export/import in %s:%d", path, line_number)
        updated = fix_document(original, fixer)
        if updated != original:
            path.write_text(updated, encoding="utf-8", newline="\n")
            changed.append(path)
            logger.info("Fixed MDX issues in %s", path)
    return changed


__all__ = ["MdxCodeBlockFixer", "fix_document", "fix_tree"]
