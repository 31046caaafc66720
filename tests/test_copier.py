"""Tests for docagg.copier and docagg.scanner."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from docagg.copier import AggregationError, ContentCopier
from docagg.frontmatter import EDIT_URL_KEY, decode
from docagg.models import RootFiles
from docagg.scanner import DocumentScanner
from tests._fixtures.source_builder import SourceBuilder


def _read(path: Path) -> tuple[dict, str]:
    return decode(path.read_text(encoding="utf-8"))


def test_dedicated_subdir_copies_whole_tree(sources: SourceBuilder) -> None:
    sources.write(
        "sdk",
        {
            "README.md": "# SDK\n",
            "docs/index.md": "# Peers SDK\n",
            "docs/devices.md": "# Device Management\n",
            "docs/data/orm.md": "# ORM\n",
        },
    )
    spec = sources.dedicated("sdk")

    result = ContentCopier().copy_repo(spec, sources.output_root)

    out = sources.output_root / "sdk"
    assert sorted(doc.relative_path for doc in result.documents) == [
        "data/orm.md",
        "devices.md",
        "index.md",
    ]
    assert not (out / "README.md").exists()
    metadata, body = _read(out / "devices.md")
    assert metadata[EDIT_URL_KEY] == "https://github.com/org/sdk/edit/main/docs/devices.md"
    assert body == "# Device Management\n"
    nested, _ = _read(out / "data" / "orm.md")
    assert nested[EDIT_URL_KEY] == "https://github.com/org/sdk/edit/main/docs/data/orm.md"
    assert result.warnings == []
    assert result.synthesized_index is False


def test_root_files_copies_loose_markdown_and_nested_doc_dirs(sources: SourceBuilder) -> None:
    sources.write(
        "host",
        {
            "README.md": "# Host\n",
            "CLAUDE.md": "# Notes\n",
            "guide.mdx": "# Guide\n",
            "package.json": "{}\n",
            "src/internal.md": "# not docs\n",
            "docs/setup.md": "# Setup\n",
            "docs/diagram.png": "not really a png\n",
            "documentation/deep/arch.md": "# Architecture\n",
        },
    )
    spec = sources.spec("host")

    ContentCopier().copy_repo(spec, sources.output_root)

    out = sources.output_root / "host"
    copied = sorted(p.relative_to(out).as_posix() for p in out.rglob("*") if p.is_file())
    assert copied == [
        "CLAUDE.md",
        "README.md",
        "docs/setup.md",
        "documentation/deep/arch.md",
        "guide.mdx",
    ]
    metadata, _ = _read(out / "docs" / "setup.md")
    assert metadata[EDIT_URL_KEY] == "https://github.com/org/host/edit/main/docs/setup.md"


def test_root_files_nested_dirs_are_configurable(sources: SourceBuilder) -> None:
    sources.write("ui", {"README.md": "# UI\n", "docs/a.md": "a\n", "guides/b.md": "b\n"})
    spec = sources.spec("ui", RootFiles(nested_doc_dirs=("guides",)))

    documents = DocumentScanner().scan(spec)

    assert [doc.relative_path for doc in documents] == ["README.md", "guides/b.md"]


def test_scanner_skips_hidden_and_vendored_paths(sources: SourceBuilder) -> None:
    sources.write(
        "sdk",
        {
            "docs/index.md": "# Index\n",
            "docs/.draft.md": "hidden\n",
            "docs/.cache/x.md": "hidden\n",
            "docs/node_modules/pkg/README.md": "vendored\n",
        },
    )

    documents = DocumentScanner().scan(sources.dedicated("sdk"))

    assert [doc.relative_path for doc in documents] == ["index.md"]


def test_existing_edit_url_is_preserved(sources: SourceBuilder) -> None:
    sources.write(
        "ui",
        {
            "README.md": """
                ---
                title: UI
                custom_edit_url: https://example.test/edit/README.md
                ---

                # UI
                """,
        },
    )

    ContentCopier().copy_repo(sources.spec("ui"), sources.output_root)

    metadata, body = _read(sources.output_root / "ui" / "README.md")
    assert metadata == {"title": "UI", EDIT_URL_KEY: "https://example.test/edit/README.md"}
    assert body == "# UI\n"


def test_edit_url_behind_byte_order_mark_is_preserved(sources: SourceBuilder) -> None:
    repo = sources.write("ui", {})
    (repo / "README.md").write_bytes(
        "\ufeff---\ncustom_edit_url: https://example.test/V\n---\n# UI\n".encode("utf-8")
    )

    ContentCopier().copy_repo(sources.spec("ui"), sources.output_root)

    output = (sources.output_root / "ui" / "README.md").read_text(encoding="utf-8")
    assert not output.startswith("\ufeff")
    metadata, body = decode(output)
    assert metadata == {EDIT_URL_KEY: "https://example.test/V"}
    assert body == "# UI\n"


def test_malformed_front_matter_body_is_kept_verbatim(sources: SourceBuilder) -> None:
    raw = "---\ntitle: [broken\n---\n# Still here\n"
    sources.write("ui", {"README.md": raw})

    ContentCopier().copy_repo(sources.spec("ui"), sources.output_root)

    metadata, body = _read(sources.output_root / "ui" / "README.md")
    assert metadata == {EDIT_URL_KEY: "https://github.com/org/ui/edit/main/README.md"}
    assert body == raw


def test_fallback_index_is_synthesised(sources: SourceBuilder) -> None:
    sources.write("test-repo", {"other.md": "# Other Doc"})
    spec = sources.spec("test-repo", namespace="peers-app")

    result = ContentCopier().copy_repo(spec, sources.output_root)

    index = sources.output_root / "test-repo" / "index.md"
    assert result.synthesized_index is True
    metadata, body = _read(index)
    assert body.splitlines()[0] == "# test-repo"
    assert "peers-app/test-repo" in body
    assert metadata == {EDIT_URL_KEY: "https://github.com/peers-app/test-repo"}


def test_readme_counts_as_index(sources: SourceBuilder) -> None:
    sources.write("ui", {"README.md": "# UI\n"})

    result = ContentCopier().copy_repo(sources.spec("ui"), sources.output_root)

    assert result.synthesized_index is False
    assert not (sources.output_root / "ui" / "index.md").exists()


def test_missing_source_root_is_a_warning(sources: SourceBuilder) -> None:
    spec = sources.spec("ghost")

    warnings = ContentCopier().copy_repo_docs(spec, sources.output_root)

    assert len(warnings) == 1
    assert "org/ghost" in warnings[0]
    assert not (sources.output_root / "ghost").exists()


def test_missing_dedicated_subdir_is_a_warning(sources: SourceBuilder) -> None:
    sources.write("sdk", {"README.md": "# SDK\n"})

    result = ContentCopier().copy_repo(sources.dedicated("sdk"), sources.output_root)

    assert result.skipped is True
    assert len(result.warnings) == 1


def test_non_utf8_document_is_skipped_with_warning(sources: SourceBuilder) -> None:
    repo = sources.write("ui", {"README.md": "# UI\n"})
    (repo / "binary.md").write_bytes(b"\xff\xfe\x00bad")

    result = ContentCopier().copy_repo(sources.spec("ui"), sources.output_root)

    assert [doc.relative_path for doc in result.documents] == ["README.md"]
    assert len(result.warnings) == 1
    assert "binary.md" in result.warnings[0]


def test_write_permission_error_aborts(sources: SourceBuilder, monkeypatch: pytest.MonkeyPatch) -> None:
    sources.write("ui", {"README.md": "# UI\n"})
    original_write_text = Path.write_text

    def _deny(self: Path, *args, **kwargs):
        if self.name == "README.md" and "projects" in self.parts:
            raise PermissionError(13, "Permission denied", str(self))
        return original_write_text(self, *args, **kwargs)

    monkeypatch.setattr(Path, "write_text", _deny)

    with pytest.raises(AggregationError) as excinfo:
        ContentCopier().copy_repo(sources.spec("ui"), sources.output_root)

    assert excinfo.value.repo == "org/ui"
    assert excinfo.value.path == sources.output_root / "ui" / "README.md"
    assert "org/ui" in str(excinfo.value)


def test_vanished_source_file_is_a_warning(sources: SourceBuilder, monkeypatch: pytest.MonkeyPatch) -> None:
    repo = sources.write("ui", {"README.md": "# UI\n", "gone.md": "# Gone\n"})
    scanner = DocumentScanner()
    documents = scanner.scan(sources.spec("ui"))
    os.remove(repo / "gone.md")
    monkeypatch.setattr(scanner, "scan", lambda spec: documents)

    result = ContentCopier(scanner).copy_repo(sources.spec("ui"), sources.output_root)

    assert [doc.relative_path for doc in result.documents] == ["README.md"]
    assert len(result.warnings) == 1
    assert "gone.md" in result.warnings[0]
