"""
Shared test helpers: a fake HTTP response and a mock session serving a
scripted sequence of responses.
"""

import json
from unittest.mock import MagicMock

import pytest

from mwarchive.core.mediawiki_client import MediaWikiClient


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        return json.loads(self.text)


def make_session(*responses):
    """Mock session whose get() returns (or raises) each item in turn."""
    session = MagicMock()
    session.headers = {}
    session.get.side_effect = list(responses)
    return session


def allpages(*pages, cont=None):
    """Build a list=allpages payload from (pageid, title) pairs."""
    payload = {
        "batchcomplete": "",
        "query": {"allpages": [{"pageid": pid, "ns": 0, "title": title} for pid, title in pages]},
    }
    if cont is not None:
        payload["continue"] = cont
    return FakeResponse(payload)


def revision_page(pageid=42, title="Main Page", text="Hello '''world'''", ns=0):
    return {
        "pageid": pageid,
        "ns": ns,
        "title": title,
        "revisions": [{
            "revid": 1001,
            "parentid": 1000,
            "timestamp": "2024-05-01T12:00:00Z",
            "size": len(text),
            "sha1": "da39a3ee5e6b4b0d3255bfef95601890afd80709",
            "slots": {"main": {
                "contentmodel": "wikitext",
                "contentformat": "text/x-wiki",
                "*": text,
            }},
        }],
    }


@pytest.fixture
def client_factory():
    def build(*responses, **kwargs):
        session = make_session(*responses)
        kwargs.setdefault("retry_delay", 0)
        client = MediaWikiClient("https://wiki.example.org/w/api.php", session=session, **kwargs)
        return client, session
    return build
