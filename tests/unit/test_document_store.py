"""Unit tests for DocumentStore and file name sanitising."""

from __future__ import annotations

from pathlib import Path

import pytest

from docqa.services.ingestion.document_store import DocumentStore, safe_file_name
from docqa.utils.errors import IngestionError


class TestSafeFileName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("report.pdf", "report.pdf"),
            ("../../etc/passwd.txt", "passwd.txt"),
            ("..\\..\\windows\\notes.md", "notes.md"),
            ("/abs/path/a.txt", "a.txt"),
        ],
    )
    def test_keeps_only_base_name(self, raw: str, expected: str) -> None:
        assert safe_file_name(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", ".", ".."])
    def test_rejects_empty_names(self, raw: str) -> None:
        with pytest.raises(IngestionError):
            safe_file_name(raw)


class TestDocumentStore:
    def test_save_creates_directory(self, tmp_path: Path) -> None:
        store = DocumentStore(tmp_path / "docs")

        saved = store.save("../a.txt", b"hello")

        assert saved == tmp_path / "docs" / "a.txt"
        assert saved.read_bytes() == b"hello"

    def test_save_overwrites(self, tmp_path: Path) -> None:
        store = DocumentStore(tmp_path)
        store.save("a.txt", b"one")
        store.save("a.txt", b"two")
        assert (tmp_path / "a.txt").read_bytes() == b"two"

    def test_import_file_copies_into_store(self, tmp_path: Path) -> None:
        outside = tmp_path / "outside.md"
        outside.write_text("# hi", encoding="utf-8")
        store = DocumentStore(tmp_path / "docs")

        target = store.import_file(outside)

        assert target == tmp_path / "docs" / "outside.md"
        assert target.read_text(encoding="utf-8") == "# hi"
        assert outside.exists()

    def test_import_file_already_in_store(self, tmp_path: Path) -> None:
        store = DocumentStore(tmp_path)
        inside = store.save("a.txt", b"x")
        assert store.import_file(inside) == inside

    def test_import_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(IngestionError):
            DocumentStore(tmp_path / "docs").import_file(tmp_path / "nope.txt")

    def test_list_documents_only_supported_sorted(self, tmp_path: Path) -> None:
        store = DocumentStore(tmp_path / "docs")
        for name in ["b.txt", "a.pdf", "c.md", "d.csv", "e.docx"]:
            store.save(name, b"x")
        (store.root / "sub.txt").mkdir()

        assert [p.name for p in store.list_documents()] == ["a.pdf", "b.txt", "c.md"]

    def test_list_documents_on_missing_dir(self, tmp_path: Path) -> None:
        store = DocumentStore(tmp_path / "fresh")
        assert store.list_documents() == []
        assert store.root.is_dir()
