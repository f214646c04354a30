from urllib.parse import urljoin, urlsplit, urlunsplit
from .plugin import pm


def remove_dot_segments(path):
    """Resolve '.' and '..' segments the way RFC 3986 section 5.2.4 does."""
    if not path:
        return path

    segments = path.split('/')
    output = []
    for segment in segments:
        if segment == '.':
            continue
        if segment == '..':
            if len(output) > 1:
                output.pop()
            continue
        output.append(segment)

    # A trailing '.' or '..' still denotes a directory
    if segments[-1] in ('.', '..'):
        output.append('')

    rv = '/'.join(output)
    if path.startswith('/') and not rv.startswith('/'):
        rv = '/' + rv
    return rv


def normalize(url):
    """Canonical form of url, used as the key of a crawl's visited set.

    Falls back to url itself if it can't be parsed."""
    try:
        parts = urlsplit(url)
        return urlunsplit((
            parts.scheme.lower(),
            parts.netloc.lower(),
            remove_dot_segments(parts.path) or ('/' if parts.netloc else ''),
            parts.query,
            '',
        ))
    except ValueError:
        return url


def absolutize(base_url, href):
    """Resolve href against base_url; None if it can't be resolved.

    The fragment is kept, so that filter_url plugins can reject it."""
    try:
        return urljoin(base_url, href.strip())
    except ValueError:
        return None


def is_in_scope(url, site_url):
    try:
        parsed = urlsplit(url)
        site = urlsplit(site_url)
    except ValueError:
        return False

    if not parsed.hostname or not site.hostname:
        return False

    return not False in pm.hook.filter_url(site_url=site_url, url=url)


def belongs_to(url, site_url):
    """Whether url lives under the configured site root site_url."""
    root = site_url.rstrip('/')
    if url == root:
        return True

    return url.startswith(root + '/') or url.startswith(root + '?')


def page_path(url, site_url):
    root = site_url.rstrip('/')
    if url.startswith(root):
        path = url[len(root):]
    else:
        parts = urlsplit(url)
        path = parts.path
        if parts.query:
            path += '?' + parts.query

    if not path:
        return '/'

    if not path.startswith('/'):
        path = '/' + path

    return path
