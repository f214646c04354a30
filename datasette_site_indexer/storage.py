from collections import namedtuple
from contextlib import contextmanager
from more_itertools import batched

INDEXING = 'INDEXING'
INDEXED = 'INDEXED'
FAILED = 'FAILED'

Site = namedtuple('Site', ['id', 'url', 'name', 'status', 'status_time', 'last_error'])
Page = namedtuple('Page', ['id', 'site_id', 'path', 'code', 'content'])
Lemma = namedtuple('Lemma', ['id', 'site_id', 'lemma', 'frequency'])

SITE_COLUMNS = 'id, url, name, status, status_time, last_error'
PAGE_COLUMNS = 'id, site_id, path, code, content'

@contextmanager
def transaction(conn):
    """A write transaction; takes the write lock up front so it can't deadlock on upgrade."""
    with conn:
        conn.execute('BEGIN IMMEDIATE')
        yield conn

def find_site_by_id(conn, site_id):
    row = conn.execute('SELECT {} FROM dsi_site WHERE id = ?'.format(SITE_COLUMNS), [site_id]).fetchone()
    if not row:
        return None

    return Site(*row)

def find_sites_by_url(conn, url):
    rows = conn.execute('SELECT {} FROM dsi_site WHERE url = ? ORDER BY id'.format(SITE_COLUMNS), [url]).fetchall()
    return [Site(*row) for row in rows]

def find_site_by_url(conn, url):
    sites = find_sites_by_url(conn, url)
    if not sites:
        return None

    return sites[0]

def find_sites_by_status(conn, status):
    rows = conn.execute('SELECT {} FROM dsi_site WHERE status = ? ORDER BY id'.format(SITE_COLUMNS), [status]).fetchall()
    return [Site(*row) for row in rows]

def insert_site(conn, url, name, status):
    cur = conn.execute('INSERT INTO dsi_site(url, name, status) VALUES (?, ?, ?)', [url, name, status])
    return cur.lastrowid

def delete_site(conn, site_id):
    # Pages, lemmas and index rows go with it: see the foreign keys in schema.py
    conn.execute('DELETE FROM dsi_site WHERE id = ?', [site_id])

def update_site_status(conn, site_id, status, last_error=None, only_if=None):
    """Move a site to status. With only_if, only when it is currently in that status."""
    sql = "UPDATE dsi_site SET status = ?, last_error = ?, status_time = strftime('%Y-%m-%d %H:%M:%f') WHERE id = ?"
    params = [status, last_error, site_id]

    if only_if:
        sql += ' AND status = ?'
        params.append(only_if)

    return conn.execute(sql, params).rowcount

def fail_sites_with_status(conn, status, last_error, site_ids=None):
    """Mark FAILED the sites in status; only those among site_ids, when given."""
    sql = "UPDATE dsi_site SET status = ?, last_error = ?, status_time = strftime('%Y-%m-%d %H:%M:%f') WHERE status = ?"
    params = [FAILED, last_error, status]

    if site_ids is not None:
        sql += ' AND id IN ({})'.format(', '.join('?' * len(site_ids)))
        params.extend(site_ids)

    return conn.execute(sql, params).rowcount

def find_page(conn, site_id, path):
    row = conn.execute('SELECT {} FROM dsi_page WHERE site_id = ? AND path = ?'.format(PAGE_COLUMNS), [site_id, path]).fetchone()
    if not row:
        return None

    return Page(*row)

def find_page_by_id(conn, page_id):
    row = conn.execute('SELECT {} FROM dsi_page WHERE id = ?'.format(PAGE_COLUMNS), [page_id]).fetchone()
    if not row:
        return None

    return Page(*row)

def insert_page(conn, site_id, path, code, content):
    """Insert a page; returns its id, or None if the site already has a page at path."""
    cur = conn.execute(
        'INSERT INTO dsi_page(site_id, path, code, content) VALUES (?, ?, ?, ?) ON CONFLICT(site_id, path) DO NOTHING',
        [site_id, path, code, content]
    )

    if cur.rowcount != 1:
        return None

    return cur.lastrowid

def delete_page(conn, page_id):
    """Delete a page, taking it back out of its lemmas' frequencies."""
    row = conn.execute('SELECT site_id FROM dsi_page WHERE id = ?', [page_id]).fetchone()
    if not row:
        return

    site_id, = row
    conn.execute('UPDATE dsi_lemma SET frequency = frequency - 1 WHERE id IN (SELECT lemma_id FROM dsi_index WHERE page_id = ?)', [page_id])
    conn.execute('DELETE FROM dsi_page WHERE id = ?', [page_id])
    conn.execute('DELETE FROM dsi_lemma WHERE site_id = ? AND frequency <= 0', [site_id])

def find_lemma(conn, site_id, lemma):
    row = conn.execute('SELECT id, site_id, lemma, frequency FROM dsi_lemma WHERE site_id = ? AND lemma = ?', [site_id, lemma]).fetchone()
    if not row:
        return None

    return Lemma(*row)

def upsert_lemma(conn, site_id, lemma):
    """Count one more page containing lemma; returns the lemma's id."""
    conn.execute(
        'INSERT INTO dsi_lemma(site_id, lemma, frequency) VALUES (?, ?, 1) ON CONFLICT(site_id, lemma) DO UPDATE SET frequency = frequency + 1',
        [site_id, lemma]
    )

    lemma_id, = conn.execute('SELECT id FROM dsi_lemma WHERE site_id = ? AND lemma = ?', [site_id, lemma]).fetchone()
    return lemma_id

def insert_index_rows(conn, rows):
    """Insert (page_id, lemma_id, rank) tuples."""
    inserted = 0
    for batch in batched(rows, 100):
        cur = conn.executemany(
            'INSERT INTO dsi_index(page_id, lemma_id, rank) VALUES (?, ?, ?) ON CONFLICT(page_id, lemma_id) DO NOTHING',
            batch
        )
        inserted += cur.rowcount

    return inserted

def pages_without_index(conn, site_id=None):
    """Ids of pages that have no index rows yet."""
    sql = 'SELECT id FROM dsi_page WHERE NOT EXISTS(SELECT * FROM dsi_index WHERE dsi_index.page_id = dsi_page.id)'
    params = []

    if site_id is not None:
        sql += ' AND site_id = ?'
        params.append(site_id)

    return [row[0] for row in conn.execute(sql + ' ORDER BY id', params).fetchall()]

def statistics(conn):
    sites = conn.execute(
        'SELECT id, url, name, status, status_time, last_error, '
        '(SELECT COUNT(*) FROM dsi_page WHERE dsi_page.site_id = dsi_site.id), '
        '(SELECT COUNT(*) FROM dsi_lemma WHERE dsi_lemma.site_id = dsi_site.id) '
        'FROM dsi_site ORDER BY id'
    ).fetchall()

    detailed = []
    for (id, url, name, status, status_time, last_error, pages, lemmas) in sites:
        detailed.append({
            'url': url,
            'name': name,
            'status': status,
            'status_time': status_time,
            'error': last_error,
            'pages': pages,
            'lemmas': lemmas,
        })

    return {
        'total': {
            'sites': len(detailed),
            'pages': sum(site['pages'] for site in detailed),
            'lemmas': sum(site['lemmas'] for site in detailed),
        },
        'detailed': detailed,
    }
