"""
Tests for the archive controller: limit handling, per-page failure
tolerance and the skip-before-fetch behaviour of the file backend.
"""

from unittest.mock import MagicMock

import pytest

from mwarchive.config import ArchiveConfig
from mwarchive.core.controller import ArchiveController
from mwarchive.core.errors import NetworkError, NotFoundError, ServerError, StorageError
from mwarchive.core.models import PageContent, PageRef
from mwarchive.core.storage import SQLitePersister
from mwarchive.utils.file_manager import FileManager


class FakeWiki:
    """Stands in for MediaWikiClient with a fixed set of pages per namespace."""

    def __init__(self, namespaces, failing=None, overshoot=0):
        self.namespaces = namespaces
        self.failing = failing or {}
        self.overshoot = overshoot
        self.listed = []
        self.fetched = []

    def list_pages(self, namespace, limit=0):
        self.listed.append((namespace, limit))
        refs = [PageRef(pid, title, namespace) for pid, title in self.namespaces[namespace]]
        if limit > 0:
            return refs[:limit + self.overshoot]
        return refs

    def fetch_latest_revision(self, title):
        self.fetched.append(title)
        if title in self.failing:
            raise self.failing[title]
        for namespace, pages in self.namespaces.items():
            for pid, t in pages:
                if t == title:
                    return PageContent(page_id=pid, namespace=namespace, title=t, text=f"text of {t}", rev_id=pid * 10)
        raise NotFoundError(title)


PAGES = {0: [(1, "Alpha"), (2, "Beta"), (3, "Gamma"), (4, "Delta"), (5, "Epsilon")]}


def make_controller(tmp_path, wiki, namespaces=(0,), limit=0, persister=None):
    config = ArchiveConfig(namespaces=list(namespaces), limit=limit, db_path=str(tmp_path / "a.db"))
    persister = persister or SQLitePersister(config.db_path)
    return ArchiveController(config, wiki, persister), persister


def test_driver_truncates_overshooting_listing(tmp_path):
    wiki = FakeWiki(PAGES, overshoot=2)
    controller, store = make_controller(tmp_path, wiki, limit=3)

    stats = controller.run()

    assert stats[0]["listed"] == 3
    assert stats[0]["archived"] == 3
    assert store.count_pages() == 3
    assert wiki.fetched == ["Alpha", "Beta", "Gamma"]
    assert wiki.listed == [(0, 3)]


def test_limit_larger_than_namespace(tmp_path):
    controller, store = make_controller(tmp_path, FakeWiki(PAGES), limit=50)

    assert controller.run()[0]["archived"] == 5
    assert store.count_pages() == 5


def test_no_limit_archives_everything(tmp_path):
    controller, store = make_controller(tmp_path, FakeWiki(PAGES), limit=0)

    controller.run()

    assert store.count_pages() == 5


def test_page_failures_do_not_abort_namespace(tmp_path):
    wiki = FakeWiki(PAGES, failing={
        "Beta": NotFoundError("Beta"),
        "Delta": NetworkError("connection reset"),
    })
    controller, store = make_controller(tmp_path, wiki)

    stats = controller.run()[0]

    assert stats == {"listed": 5, "archived": 3, "skipped": 0, "failed": 2}
    assert store.count_pages() == 3
    assert wiki.fetched == ["Alpha", "Beta", "Gamma", "Delta", "Epsilon"]

    failed = [(e["page_id"], e["title"], e["type"]) for e in controller.errors.errors]
    assert failed == [(2, "Beta", "NotFoundError"), (4, "Delta", "NetworkError")]


def test_storage_failure_is_per_page(tmp_path):
    store = MagicMock()
    store.skips_existing = False
    store.persist.side_effect = [True, StorageError("disk full"), True, True, True]
    controller, _ = make_controller(tmp_path, FakeWiki(PAGES), persister=store)

    stats = controller.run()[0]

    assert stats["archived"] == 4
    assert stats["failed"] == 1
    assert store.persist.call_count == 5


def test_failures_are_logged_with_page(tmp_path, caplog):
    wiki = FakeWiki(PAGES, failing={"Gamma": NotFoundError("Gamma")})
    controller, _ = make_controller(tmp_path, wiki)

    with caplog.at_level("INFO"):
        controller.run()

    errors = [r for r in caplog.records if r.levelname == "ERROR"]
    assert len(errors) == 1
    assert "page_id=3" in errors[0].getMessage()
    assert "'Gamma'" in errors[0].getMessage()
    assert any("namespace=0" in r.getMessage() for r in caplog.records if r.levelname == "INFO")


def test_enumeration_failure_propagates(tmp_path):
    wiki = MagicMock()
    wiki.list_pages.side_effect = ServerError(503, "overloaded")
    controller, store = make_controller(tmp_path, wiki)

    with pytest.raises(ServerError):
        controller.run()
    wiki.fetch_latest_revision.assert_not_called()
    assert store.count_pages() == 0


def test_namespaces_processed_in_configured_order(tmp_path):
    wiki = FakeWiki({0: [(1, "A")], 4: [(2, "Project:B")], 2: [(3, "User:C")]})
    controller, store = make_controller(tmp_path, wiki, namespaces=(4, 0, 2))

    stats = controller.run()

    assert [ns for ns, _ in wiki.listed] == [4, 0, 2]
    assert list(stats) == [4, 0, 2]
    assert store.count_pages(4) == 1


def test_rerun_with_database_keeps_one_row_per_page(tmp_path):
    wiki = FakeWiki(PAGES)
    controller, store = make_controller(tmp_path, wiki)

    controller.run()
    second = controller.run()[0]

    assert second["archived"] == 5
    assert store.count_pages() == 5
    assert len(wiki.fetched) == 10


def test_file_backend_skips_fetch_for_archived_pages(tmp_path):
    files = FileManager(str(tmp_path / "out"))
    wiki = FakeWiki(PAGES)
    controller, _ = make_controller(tmp_path, wiki, persister=files)

    first = controller.run()[0]
    wiki.fetched.clear()
    second = controller.run()[0]

    assert first["archived"] == 5
    assert second == {"listed": 5, "archived": 0, "skipped": 5, "failed": 0}
    assert wiki.fetched == []


def test_file_backend_only_fetches_new_pages(tmp_path):
    files = FileManager(str(tmp_path / "out"))
    files.persist(0, PageRef(2, "Beta", 0), PageContent(page_id=2, namespace=0, title="Beta", text="old"))
    wiki = FakeWiki(PAGES)
    controller, _ = make_controller(tmp_path, wiki, persister=files)

    stats = controller.run()[0]

    assert stats["skipped"] == 1
    assert stats["archived"] == 4
    assert "Beta" not in wiki.fetched
    assert files.get_file_path(0, PageRef(2, "Beta", 0)).read_text(encoding="utf-8") == "Title: Beta\n\nold"
