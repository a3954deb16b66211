import itertools
from urllib.parse import urlsplit

import pytest

from contextio.transport import HttpTransport, TransportResponse
from contextio.test.mock_provider import create_app

NOW = 1318622958


class FixedClock:
    """Clock which only moves when told to."""

    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class CountingNonces:
    def __init__(self, prefix="nonce"):
        self._counter = itertools.count(1)
        self.prefix = prefix

    def __call__(self):
        return f"{self.prefix}{next(self._counter)}"


class RecordingTransport(HttpTransport):
    """Remembers every request and answers with a canned response."""

    def __init__(self, status_code=200, content=b"{}", content_type="application/json"):
        self.sent = []
        self.status_code = status_code
        self.content = content
        self.content_type = content_type

    def send(self, method, url, headers, body=None, files=None, timeout=None):
        self.sent.append({
            "method": method,
            "url": url,
            "headers": dict(headers),
            "body": body,
            "files": files,
            "timeout": timeout,
        })
        return TransportResponse(self.status_code, {"Content-Type": self.content_type}, self.content)

    @property
    def last(self):
        return self.sent[-1]


class FlaskTransport(HttpTransport):
    """Sends requests to a Flask app through its test client."""

    def __init__(self, app):
        self.client = app.test_client()

    def send(self, method, url, headers, body=None, files=None, timeout=None):
        parts = urlsplit(url)
        response = self.client.open(
            parts.path,
            base_url=f"{parts.scheme}://{parts.netloc}",
            query_string=parts.query,
            method=method,
            headers=headers,
            data=body)
        return TransportResponse(response.status_code, dict(response.headers), response.get_data())


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def nonces():
    return CountingNonces()


@pytest.fixture
def recording_transport():
    return RecordingTransport()


@pytest.fixture
def mock_app(clock):
    app = create_app(clock=clock)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def mock_client(mock_app):
    return mock_app.test_client()
