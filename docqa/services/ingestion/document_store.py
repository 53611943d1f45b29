"""On-disk store of uploaded source files.

Uploads are written here before they are ingested so that a reindex can
rebuild the whole collection from disk.
"""

from __future__ import annotations

import shutil
from pathlib import Path, PureWindowsPath

import structlog

from docqa.services.ingestion.source_processors.extractor import DocumentExtractor
from docqa.utils.errors import IngestionError

logger = structlog.get_logger(logger_name=__name__)


def safe_file_name(file_name: str) -> str:
    """Reduce a client-supplied file name to its base name.

    Both ``/`` and ``\\`` separators are stripped so a name like
    ``..\\..\\etc\\passwd`` cannot escape the document directory.
    """
    name = PureWindowsPath(file_name).name.strip()
    if name in {"", ".", ".."}:
        raise IngestionError(message=f"Invalid file name: {file_name!r}")
    return name


class DocumentStore:
    """A flat directory of source documents, created on demand."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_dir(self) -> Path:
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def save(self, file_name: str, content: bytes) -> Path:
        """Write *content* under the base name of *file_name*; overwrite if present."""
        target = self.ensure_dir() / safe_file_name(file_name)
        try:
            target.write_bytes(content)
        except OSError as exc:
            raise IngestionError(message=f"Could not save '{target.name}': {exc}") from exc
        logger.info("document_saved", path=str(target), size_bytes=len(content))
        return target

    def import_file(self, source_path: str | Path) -> Path:
        """Copy an existing file into the store (used by the CLI)."""
        source = Path(source_path)
        target = self.ensure_dir() / safe_file_name(source.name)
        if source.resolve() == target.resolve():
            return target
        try:
            shutil.copyfile(source, target)
        except OSError as exc:
            raise IngestionError(message=f"Could not copy '{source}': {exc}") from exc
        logger.info("document_imported", source=str(source), path=str(target))
        return target

    def list_documents(self) -> list[Path]:
        """Return every supported file in the store, sorted by name."""
        self.ensure_dir()
        return sorted(
            path
            for path in self._root.iterdir()
            if path.is_file() and DocumentExtractor.is_supported(path)
        )
