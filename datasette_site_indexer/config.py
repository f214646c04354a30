import os
import structlog
from collections import namedtuple
from .errors import ConfigError, SchemaError
from .schema import current_schema_version, schema

logger = structlog.get_logger(__name__)

_plugin_name = 'datasette-site-indexer'

DEFAULT_USER_AGENT = 'Mozilla/5.0 (compatible; SiteIndexerBot/1.0)'
DEFAULT_REFERRER = 'http://www.google.com'

SiteRoot = namedtuple('SiteRoot', ['url', 'name'])

IndexerConfig = namedtuple(
    'IndexerConfig',
    ['sites', 'max_depth', 'fetch_delay', 'workers', 'user_agent', 'referrer', 'index_on_crawl'],
    defaults=((), 10, 0.5, None, DEFAULT_USER_AGENT, DEFAULT_REFERRER, True)
)

def indexer_database(datasette):
    """Name of the database that holds the index: the first one configured for us."""
    for db_name, db in datasette.databases.items():
        if db.is_memory or not db.is_mutable:
            continue

        if datasette.plugin_config(_plugin_name, db_name) is None:
            continue

        return db_name

    return None

def parse_sites(raw):
    if not isinstance(raw, list):
        raise ConfigError('sites must be a list of {url, name} objects')

    rv = []
    for site in raw:
        if not isinstance(site, dict) or not site.get('url'):
            raise ConfigError('every site needs a url: {!r}'.format(site))

        url = site['url']
        if not url.startswith('http://') and not url.startswith('https://'):
            raise ConfigError('site url must be http or https: {}'.format(url))

        rv.append(SiteRoot(url=url, name=site.get('name') or url))

    return tuple(rv)

def parse_config(raw):
    raw = raw or {}

    try:
        max_depth = int(raw.get('max-depth', 10))
        fetch_delay = float(raw.get('fetch-delay', 0.5))
        workers = int(raw.get('workers') or os.cpu_count() or 1)
    except (TypeError, ValueError) as e:
        raise ConfigError('invalid {} configuration: {}'.format(_plugin_name, e))

    if max_depth < 1:
        raise ConfigError('max-depth must be at least 1, got {}'.format(max_depth))

    if fetch_delay < 0:
        raise ConfigError('fetch-delay must not be negative, got {}'.format(fetch_delay))

    if workers < 1:
        raise ConfigError('workers must be at least 1, got {}'.format(workers))

    return IndexerConfig(
        sites=parse_sites(raw.get('sites', [])),
        max_depth=max_depth,
        fetch_delay=fetch_delay,
        workers=workers,
        user_agent=raw.get('user-agent', DEFAULT_USER_AGENT),
        referrer=raw.get('referrer', DEFAULT_REFERRER),
        index_on_crawl=bool(raw.get('index-on-crawl', True)),
    )

def load_config(datasette, db_name):
    return parse_config(datasette.plugin_config(_plugin_name, db_name))

def ensure_wal_mode(conn):
    old_level = conn.isolation_level
    try:
        conn.isolation_level = None
        mode, = conn.execute('PRAGMA journal_mode=WAL').fetchone()
        if mode != 'wal':
            raise SchemaError('unable to set PRAGMA journal_mode=WAL on connection, got {}'.format(mode))
    finally:
        conn.isolation_level = old_level

def install_schema(conn, db_name=None):
    ensure_wal_mode(conn)

    v, = conn.execute("PRAGMA user_version").fetchone()

    if not v:
        logger.info('installing_schema', db=db_name, version=current_schema_version)
        conn.executescript(schema)
    elif v == current_schema_version:
        pass
    else:
        raise SchemaError('unsupported schema version in db {}: {} -- you may need to give datasette-site-indexer its own database'.format(db_name, v))

async def get_db_version(db):
    results = await db.execute('pragma user_version')
    for row in results:
        return row['user_version']

async def ensure_schema(db):
    def ensure_schema_internal(conn):
        install_schema(conn, db.name)

    await db.execute_write_fn(ensure_schema_internal, block=True)
    version = await get_db_version(db)

    if version != current_schema_version:
        raise SchemaError('unable to ensure schema in database {} (version={}; desired={}); please check that the database is mutable and not the _memory database'.format(db.name, version, current_schema_version))
