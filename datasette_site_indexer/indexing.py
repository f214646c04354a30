import structlog
from . import storage
from .extract import extract_text
from .lemmatizer import default_lemmatizer

logger = structlog.get_logger(__name__)

def index_page(conn, site_id, page_id, content, lemmatizer=None):
    """Add a stored page to its site's lemma index.

    Each lemma found in the page has its site-wide frequency bumped by one and
    gets an index row whose rank is the number of times it occurs in the page.
    Returns the number of distinct lemmas."""
    lemmatizer = lemmatizer or default_lemmatizer()
    counts = lemmatizer.lemmatize(extract_text(content))

    with storage.transaction(conn):
        rows = []
        for lemma, count in counts.items():
            lemma_id = storage.upsert_lemma(conn, site_id, lemma)
            rows.append((page_id, lemma_id, float(count)))

        storage.insert_index_rows(conn, rows)

    logger.debug('page_indexed', site_id=site_id, page_id=page_id, lemmas=len(counts))
    return len(counts)

def index_pending_pages(conn, lemmatizer=None, site_id=None):
    """Index every stored page that has no index rows yet; returns how many were indexed."""
    indexed = 0

    for page_id in storage.pages_without_index(conn, site_id):
        page = storage.find_page_by_id(conn, page_id)
        if not page:
            continue

        index_page(conn, page.site_id, page.id, page.content, lemmatizer)
        indexed += 1

    logger.info('pending_pages_indexed', site_id=site_id, pages=indexed)
    return indexed
