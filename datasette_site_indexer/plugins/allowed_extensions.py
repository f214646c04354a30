from ..hookspecs import hookimpl
from urllib.parse import urlparse
import posixpath

# Anything else is an asset: images, stylesheets, scripts, documents...
ALLOWED_EXTENSIONS = frozenset(['', '.html', '.htm', '.php', '.asp', '.jsp', '.xhtml'])

def extension(url):
    path = urlparse(url).path.lower()
    last_segment = path.rsplit('/', 1)[-1]
    return posixpath.splitext(last_segment)[1]

@hookimpl
def filter_url(url):
    try:
        ext = extension(url)
    except ValueError:
        return False

    if not ext in ALLOWED_EXTENSIONS:
        return False
