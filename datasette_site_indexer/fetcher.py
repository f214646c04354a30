import structlog
from .errors import FetchError
from .plugin import pm

logger = structlog.get_logger(__name__)

def request_headers(config):
    return {
        'User-Agent': config.user_agent,
        'Referer': config.referrer,
    }

def is_html(content_type):
    if not content_type:
        return False

    content_type = content_type.lower()
    return content_type.startswith('text/html') or 'xhtml' in content_type or 'xml' in content_type

def fetch(url, request_headers):
    """Fetch url through the fetch_url plugins.

    HTTP error statuses come back as ordinary responses; only a failure to get
    any response raises FetchError."""
    response = pm.hook.fetch_url(url=url, request_headers=request_headers)

    if not response:
        # Weird, this should be impossible.
        raise FetchError('no fetch_url plugin handled {}'.format(url))

    if isinstance(response, Exception):
        raise FetchError('unable to fetch {}: {!r}'.format(url, response)) from response

    logger.debug('fetched', url=url, status_code=response['status_code'], content_type=response.get('content_type'))
    return response
