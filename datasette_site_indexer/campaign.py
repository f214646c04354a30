import threading
import weakref
import structlog
from . import fetcher, indexing, storage, urls
from .crawl import SiteCrawl
from .errors import AlreadyRunning, FetchError, NotRunning, OutsideConfiguredScope

logger = structlog.get_logger(__name__)

STOPPED_BY_USER = 'Indexing stopped by user'

_controllers = weakref.WeakKeyDictionary()

def get_controller(datasette):
    return _controllers.get(datasette)

def set_controller(datasette, controller):
    _controllers[datasette] = controller


class Campaign:
    """One crawl of every configured site. Owns its stop signal and site threads."""

    def __init__(self, factory, config, lemmatizer=None):
        self.factory = factory
        self.config = config
        self.lemmatizer = lemmatizer
        self.stop_event = threading.Event()
        self.threads = []
        self.site_ids = []

    def start(self, sites):
        """sites: (site_id, SiteRoot) pairs whose rows already exist."""
        for site_id, root in sites:
            self.site_ids.append(site_id)
            t = threading.Thread(
                target=self.crawl_site,
                args=(site_id, root),
                name='dsi-site-{}'.format(site_id),
                daemon=True
            )
            t.start()
            self.threads.append(t)

    def crawl_site(self, site_id, root):
        conn = self.factory()
        crawl = SiteCrawl(self.factory, self.config, site_id, root.url, self.stop_event, self.lemmatizer)

        try:
            finished = crawl.run()
        except Exception as e:
            logger.error('site_crawl_failed', site_url=root.url, error=repr(e))
            storage.update_site_status(conn, site_id, storage.FAILED, str(e) or repr(e), only_if=storage.INDEXING)
            return

        if finished:
            storage.update_site_status(conn, site_id, storage.INDEXED, only_if=storage.INDEXING)

    def stop(self):
        self.stop_event.set()

    @property
    def stopped(self):
        return self.stop_event.is_set()

    def is_running(self):
        return not self.stopped and any(t.is_alive() for t in self.threads)

    def join(self, timeout=None):
        """Wait for every site thread; returns True if they all finished."""
        for t in self.threads:
            t.join(timeout)

        return not any(t.is_alive() for t in self.threads)


class CampaignController:
    def __init__(self, factory, config, lemmatizer=None):
        self.factory = factory
        self.config = config
        self.lemmatizer = lemmatizer
        self.campaign = None
        self._lock = threading.Lock()

    def is_running(self):
        campaign = self.campaign
        return campaign is not None and campaign.is_running()

    def start(self):
        with self._lock:
            if self.is_running():
                raise AlreadyRunning()

            conn = self.factory()
            sites = []
            with storage.transaction(conn):
                for root in self.config.sites:
                    for site in storage.find_sites_by_url(conn, root.url):
                        storage.delete_site(conn, site.id)

                    site_id = storage.insert_site(conn, root.url, root.name, storage.INDEXING)
                    sites.append((site_id, root))

            self.campaign = Campaign(self.factory, self.config, self.lemmatizer)
            self.campaign.start(sites)
            logger.info('campaign_started', sites=len(sites))
            return self.campaign

    def stop(self):
        with self._lock:
            if not self.is_running():
                raise NotRunning()

            campaign = self.campaign
            campaign.stop()
            self.campaign = None

            conn = self.factory()
            stopped = storage.fail_sites_with_status(conn, storage.INDEXING, STOPPED_BY_USER, campaign.site_ids)
            logger.info('campaign_stopped', sites=stopped)

    def site_root_for(self, url):
        for root in self.config.sites:
            if urls.belongs_to(url, root.url):
                return root

        return None

    def index_single_page(self, url):
        """Fetch, store and index one page of a configured site, outside any campaign."""
        root = self.site_root_for(url)
        if not root:
            raise OutsideConfiguredScope(url)

        conn = self.factory()

        created = False
        site = storage.find_site_by_url(conn, root.url)
        if site:
            site_id = site.id
        else:
            site_id = storage.insert_site(conn, root.url, root.name, storage.INDEXING)
            created = True

        try:
            response = fetcher.fetch(url, fetcher.request_headers(self.config))

            status_code = response['status_code']
            content_type = response.get('content_type')
            if status_code != 200:
                raise FetchError('unable to fetch {}: HTTP {}'.format(url, status_code))

            if not fetcher.is_html(content_type):
                raise FetchError('unable to index {}: unsupported content type {}'.format(url, content_type))
        except FetchError as e:
            if created:
                storage.update_site_status(conn, site_id, storage.FAILED, str(e))
            raise

        path = urls.page_path(url, root.url)
        with storage.transaction(conn):
            existing = storage.find_page(conn, site_id, path)
            if existing:
                storage.delete_page(conn, existing.id)

            page_id = storage.insert_page(conn, site_id, path, status_code, response['text'])

        indexing.index_page(conn, site_id, page_id, response['text'], self.lemmatizer)
        storage.update_site_status(conn, site_id, storage.INDEXED)
        logger.info('single_page_indexed', url=url, site_id=site_id, path=path)
        return page_id

    def index_pending_pages(self):
        conn = self.factory()
        return indexing.index_pending_pages(conn, self.lemmatizer)

    def statistics(self):
        rv = storage.statistics(self.factory())
        rv['total']['indexing'] = self.is_running()
        return rv
