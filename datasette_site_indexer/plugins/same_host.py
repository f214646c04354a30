from ..hookspecs import hookimpl
from urllib.parse import urlparse

@hookimpl
def filter_url(site_url, url):
    try:
        site_host = urlparse(site_url).hostname
        host = urlparse(url).hostname
    except ValueError:
        return False

    if not site_host or not host:
        return False

    return site_host == host
