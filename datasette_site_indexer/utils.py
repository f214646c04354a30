from datasette_site_indexer.config import ensure_wal_mode
import sqlite3
import threading
import types

def connect(db_path):
    # Crawl threads contend for the write lock; wait rather than fail fast.
    conn = sqlite3.connect(str(db_path), timeout=30)
    conn.isolation_level = None
    ensure_wal_mode(conn)

    # See https://www.sqlite.org/pragma.html#pragma_synchronous; this is much faster,
    # at the expense of durability in the event of an unplanned shutdown.
    conn.execute('pragma synchronous = normal;')
    conn.execute('pragma foreign_keys = on;')
    return conn

def connection_factory(db_path):
    """Return a function that gives each thread its own lazily opened connection."""
    local = threading.local()

    def get_db():
        conn = getattr(local, 'conn', None)
        if conn is None:
            conn = local.conn = connect(db_path)

        return conn

    return get_db

def module_from_path(path, name):
    # Stolen from https://github.com/simonw/datasette/blob/013496862f4d4b441ab61255242b838b24287607/datasette/utils/__init__.py#L741
    # Adapted from http://sayspy.blogspot.com/2011/07/how-to-import-module-from-just-file.html
    mod = types.ModuleType(name)
    mod.__file__ = path
    with open(path, "r") as file:
        code = compile(file.read(), path, "exec", dont_inherit=True)
    exec(code, mod.__dict__)
    return mod
