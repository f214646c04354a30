from pluggy import HookimplMarker
from pluggy import HookspecMarker

hookspec = HookspecMarker("datasette_site_indexer")
hookimpl = HookimplMarker("datasette_site_indexer")

@hookspec(firstresult=True)
def fetch_url(url, request_headers):
    """Fetch a URL live from an origin server.

    Returns a dict with status_code, content_type, text and url, or the
    exception that prevented the fetch."""

@hookspec()
def filter_url(site_url, url):
    """Return False to keep url out of the crawl of the site rooted at site_url."""
