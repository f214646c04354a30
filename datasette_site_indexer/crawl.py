import queue
import threading
import structlog
from . import fetcher, indexing, storage, urls
from .extract import extract_links

logger = structlog.get_logger(__name__)


class VisitedSet:
    """Normalized URLs a site crawl has already claimed."""

    def __init__(self):
        self._lock = threading.Lock()
        self._urls = set()

    def add(self, url):
        """Claim url; False if some task already did."""
        with self._lock:
            if url in self._urls:
                return False

            self._urls.add(url)
            return True

    def __contains__(self, url):
        with self._lock:
            return url in self._urls

    def __len__(self):
        with self._lock:
            return len(self._urls)


class CrawlTask:
    """Fetch one URL of a site, store it, and say which URLs to crawl next."""

    def __init__(self, url, depth):
        self.url = url
        self.depth = depth

    def __repr__(self):
        return 'CrawlTask({!r}, depth={})'.format(self.url, self.depth)

    def should_skip(self, crawl):
        if self.depth >= crawl.config.max_depth:
            return True

        if urls.normalize(self.url) in crawl.visited:
            return True

        return not urls.is_in_scope(self.url, crawl.site_url)

    def run(self, crawl):
        """Returns the child tasks; an empty list if this URL was skipped."""
        if self.should_skip(crawl):
            logger.debug('url_skipped', url=self.url, depth=self.depth)
            return []

        # The check above is advisory; only one task wins the claim.
        if not crawl.visited.add(urls.normalize(self.url)):
            return []

        if crawl.stop_event.wait(crawl.config.fetch_delay):
            return []

        response = fetcher.fetch(self.url, fetcher.request_headers(crawl.config))
        status_code = response['status_code']
        content_type = response.get('content_type')

        if status_code != 200 or not fetcher.is_html(content_type):
            logger.info('url_not_indexable', url=self.url, status_code=status_code, content_type=content_type)
            return []

        # Redirects were followed; links are relative to where we ended up.
        final_url = response.get('url') or self.url
        if final_url != self.url:
            if not urls.is_in_scope(final_url, crawl.site_url):
                logger.info('redirected_out_of_scope', url=self.url, final_url=final_url)
                return []

            crawl.visited.add(urls.normalize(final_url))

        html = response['text']
        self.save(crawl, status_code, html)

        children = set()
        for href in extract_links(html):
            child_url = urls.absolutize(final_url, href)
            if child_url and urls.is_in_scope(child_url, crawl.site_url):
                children.add(child_url)

        return [CrawlTask(child_url, self.depth + 1) for child_url in sorted(children)]

    def save(self, crawl, status_code, html):
        conn = crawl.factory()
        path = urls.page_path(self.url, crawl.site_url)

        page_id = storage.insert_page(conn, crawl.site_id, path, status_code, html)
        if page_id is None:
            logger.debug('page_exists', url=self.url, path=path)
            return None

        logger.info('page_saved', url=self.url, path=path, site_id=crawl.site_id)

        if crawl.config.index_on_crawl:
            indexing.index_page(conn, crawl.site_id, page_id, html, crawl.lemmatizer)

        return page_id


class SiteCrawl:
    """Crawl of one site: a work queue of CrawlTasks served by a pool of threads.

    run() returns once every task reachable from the site root is done, or
    the stop event is set."""

    def __init__(self, factory, config, site_id, site_url, stop_event=None, lemmatizer=None):
        self.factory = factory
        self.config = config
        self.site_id = site_id
        self.site_url = site_url
        self.stop_event = stop_event or threading.Event()
        self.lemmatizer = lemmatizer
        self.visited = VisitedSet()
        self.queue = queue.Queue()
        self.root_error = None

    def worker(self):
        while True:
            task = self.queue.get()
            try:
                if task is None:
                    return

                if self.stop_event.is_set():
                    # Drain without doing any work so run() can return.
                    continue

                for child in task.run(self):
                    self.queue.put(child)
            except Exception as e:
                if task.depth == 0:
                    self.root_error = e
                else:
                    logger.warning('crawl_task_failed', url=task.url, error=repr(e))
            finally:
                self.queue.task_done()

    def run(self, start_url=None):
        """Returns True if the crawl ran to completion, False if it was stopped.

        The crawl starts at the site root unless start_url is given."""
        logger.info('site_crawl_started', site_url=self.site_url, site_id=self.site_id)
        self.queue.put(CrawlTask(start_url or self.site_url, 0))

        threads = []
        for i in range(self.config.workers):
            t = threading.Thread(
                target=self.worker,
                name='dsi-crawl-{}-{}'.format(self.site_id, i),
                daemon=True
            )
            t.start()
            threads.append(t)

        # Children are queued before their parent is marked done, so this
        # only returns when the whole tree has been processed.
        self.queue.join()

        for t in threads:
            self.queue.put(None)
        for t in threads:
            t.join()

        if self.root_error:
            raise self.root_error

        finished = not self.stop_event.is_set()
        logger.info('site_crawl_finished', site_url=self.site_url, pages=len(self.visited), stopped=not finished)
        return finished
