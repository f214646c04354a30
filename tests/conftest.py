import sys
import threading
import time
import types
import pytest


def pytest_configure(config):
    sys._called_from_test = True


def pytest_unconfigure(config):
    del sys._called_from_test


def html_page(body, title='Страница'):
    return '<html><head><title>{}</title></head><body>{}</body></html>'.format(title, body)


class FakeWeb:
    """Stands in for the network: serves canned responses through the fetch_url hook."""

    def __init__(self):
        self.pages = {}
        self.fetched = []
        self.gate = None
        self.gates = []
        self._lock = threading.Lock()

    def add(self, url, text, status_code=200, content_type='text/html; charset=utf-8', final_url=None):
        """final_url is where the request ended up after following redirects."""
        self.pages[url] = {
            'status_code': status_code,
            'content_type': content_type,
            'text': text,
            'url': final_url or url,
        }

    def fail(self, url, exception):
        self.pages[url] = exception

    def block(self):
        """Hold every fetch until release() is called."""
        self.gate = threading.Event()
        self.gates.append(self.gate)

    def let_new_through(self):
        """Stop holding new fetches; those already held wait for release()."""
        self.gate = None

    def release(self):
        for gate in self.gates:
            gate.set()

    def wait_for_fetch(self, url, timeout=10):
        deadline = time.monotonic() + timeout
        while url not in self.fetched and time.monotonic() < deadline:
            time.sleep(0.01)

        return url in self.fetched

    def fetch_url(self, url, request_headers):
        # The response is decided when the request is made, not when it is let through
        with self._lock:
            self.fetched.append(url)
            gate = self.gate
            response = self.pages.get(url)

        if gate:
            gate.wait(10)

        if response is not None:
            return response

        return {'status_code': 404, 'content_type': 'text/html', 'text': 'not found', 'url': url}


@pytest.fixture
def web():
    from datasette_site_indexer.hookspecs import hookimpl
    from datasette_site_indexer.plugin import pm

    fake = FakeWeb()

    # tryfirst, so the real fetch_url plugin is never reached
    @hookimpl(tryfirst=True)
    def fetch_url(url, request_headers):
        return fake.fetch_url(url, request_headers)

    plugin = types.SimpleNamespace(fetch_url=fetch_url)
    pm.register(plugin, "fake-web")
    yield fake
    fake.release()
    pm.unregister(plugin)


@pytest.fixture
def factory(tmp_path):
    from datasette_site_indexer.config import install_schema
    from datasette_site_indexer.utils import connect, connection_factory

    db_path = tmp_path / 'index.db'
    conn = connect(db_path)
    install_schema(conn, 'index')
    conn.close()

    return connection_factory(db_path)


@pytest.fixture(scope='session')
def lemmatizer():
    from datasette_site_indexer.lemmatizer import default_lemmatizer
    return default_lemmatizer()


def make_config(sites=(), **kwargs):
    from datasette_site_indexer.config import parse_config

    raw = {
        'sites': [{'url': url, 'name': url} for url in sites],
        'fetch-delay': 0,
        'workers': 2,
    }
    raw.update(kwargs)
    return parse_config(raw)
