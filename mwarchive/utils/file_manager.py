"""
File Management Utilities

Write-once file backend: each page is stored as a plain text file at a path
derived from its namespace, page id and title. A page whose file already
exists is never rewritten.
"""

import os
from pathlib import Path
from typing import Any, Dict
import logging

from mwarchive.core.errors import StorageError
from mwarchive.core.models import PageContent, PageRef
from mwarchive.core.persister import Persister
from mwarchive.utils.validators import sanitize_title


class FileManager(Persister):
    """
    Manages the on-disk layout of archived pages.

    Layout: ``<root>/namespace_<ns>/<page_id>_<sanitized_title>.txt``.
    """

    skips_existing = True

    def __init__(self, base_output_dir: str):
        """
        Initialize the file manager.

        Args:
            base_output_dir: Root directory for the archive
        """
        if not base_output_dir:
            raise StorageError("output directory is not set")
        self.base_output_dir = Path(base_output_dir)
        self.logger = logging.getLogger(__name__)

        try:
            self.base_output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create output directory {self.base_output_dir}: {e}") from e

        self.logger.info(f"Output directory: {self.base_output_dir.absolute()}")

    def generate_filename(self, page_id: int, title: str) -> str:
        """
        Generate the file name for a page.

        Args:
            page_id: Page ID
            title: Page title

        Returns:
            ``<page_id>_<sanitized_title>.txt`` or ``<page_id>.txt`` when
            nothing of the title survives sanitization
        """
        safe = sanitize_title(title)
        if safe:
            return f"{page_id}_{safe}.txt"
        return f"{page_id}.txt"

    def get_file_path(self, namespace: int, ref: PageRef) -> Path:
        return self.base_output_dir / f"namespace_{namespace}" / self.generate_filename(ref.page_id, ref.title)

    def exists(self, namespace: int, ref: PageRef) -> bool:
        return self.get_file_path(namespace, ref).exists()

    def persist(self, namespace: int, ref: PageRef, content: PageContent) -> bool:
        path = self.get_file_path(namespace, ref)
        if path.exists():
            self.logger.info(f"File exists, skipping: {path}")
            return False

        body = f"Title: {content.title}\n\n{content.text}"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"cannot create directory {path.parent}: {e}") from e

        try:
            # 'x' fails if another writer created the file in the meantime
            with open(path, 'x', encoding='utf-8') as f:
                f.write(body)
        except FileExistsError:
            self.logger.info(f"File exists, skipping: {path}")
            return False
        except OSError as e:
            raise StorageError(f"failed to write {path}: {e}") from e

        file_size = os.path.getsize(path)
        self.logger.info(f"Saved page ({file_size} bytes): {path.name}")
        return True

    def get_output_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the output directory.

        Returns:
            Dictionary with file counts per namespace directory and total size
        """
        stats: Dict[str, Any] = {
            'files': 0,
            'total_size': 0,
            'namespaces': {},
            'output_dir': str(self.base_output_dir),
        }

        for ns_dir in sorted(self.base_output_dir.glob('namespace_*')):
            if not ns_dir.is_dir():
                continue
            files = list(ns_dir.glob('*.txt'))
            stats['namespaces'][ns_dir.name] = len(files)
            stats['files'] += len(files)
            stats['total_size'] += sum(f.stat().st_size for f in files)

        return stats
