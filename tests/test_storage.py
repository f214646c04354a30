import pytest
import sqlite3
from datasette_site_indexer import storage

def counts(conn):
    return {
        table: conn.execute('SELECT COUNT(*) FROM {}'.format(table)).fetchone()[0]
        for table in ('dsi_site', 'dsi_page', 'dsi_lemma', 'dsi_index')
    }

def test_connection_factory_is_per_thread(factory):
    import threading

    conn = factory()
    assert factory() is conn

    other = []
    t = threading.Thread(target=lambda: other.append(factory()))
    t.start()
    t.join()

    assert other[0] is not conn

def test_sites(factory):
    conn = factory()
    site_id = storage.insert_site(conn, 'http://example.com', 'Example', storage.INDEXING)

    site = storage.find_site_by_id(conn, site_id)
    assert site.url == 'http://example.com'
    assert site.status == storage.INDEXING
    assert site.last_error is None

    assert storage.find_site_by_url(conn, 'http://example.com') == site
    assert storage.find_site_by_url(conn, 'http://other.com') is None
    assert storage.find_sites_by_status(conn, storage.INDEXING) == [site]

    # only_if guards the transition
    assert storage.update_site_status(conn, site_id, storage.INDEXED, only_if=storage.FAILED) == 0
    assert storage.update_site_status(conn, site_id, storage.FAILED, 'boom', only_if=storage.INDEXING) == 1

    site = storage.find_site_by_id(conn, site_id)
    assert site.status == storage.FAILED
    assert site.last_error == 'boom'

def test_fail_sites_with_status(factory):
    conn = factory()
    a = storage.insert_site(conn, 'http://a.com', 'a', storage.INDEXING)
    b = storage.insert_site(conn, 'http://b.com', 'b', storage.INDEXED)

    assert storage.fail_sites_with_status(conn, storage.INDEXING, 'stopped') == 1
    assert storage.find_site_by_id(conn, a).status == storage.FAILED
    assert storage.find_site_by_id(conn, b).status == storage.INDEXED

def test_status_is_checked(factory):
    conn = factory()
    with pytest.raises(sqlite3.IntegrityError):
        storage.insert_site(conn, 'http://example.com', 'Example', 'SLEEPING')

def test_one_page_per_path(factory):
    conn = factory()
    site_id = storage.insert_site(conn, 'http://example.com', 'Example', storage.INDEXING)

    page_id = storage.insert_page(conn, site_id, '/a', 200, '<p>a</p>')
    assert page_id
    assert storage.insert_page(conn, site_id, '/a', 200, '<p>changed</p>') is None

    page = storage.find_page(conn, site_id, '/a')
    assert page.id == page_id
    assert page.content == '<p>a</p>'

def test_upsert_lemma_counts_pages(factory):
    conn = factory()
    site_id = storage.insert_site(conn, 'http://example.com', 'Example', storage.INDEXING)

    lemma_id = storage.upsert_lemma(conn, site_id, 'кот')
    assert storage.upsert_lemma(conn, site_id, 'кот') == lemma_id
    assert storage.find_lemma(conn, site_id, 'кот').frequency == 2

    # lemmas are per site
    other_id = storage.insert_site(conn, 'http://other.com', 'Other', storage.INDEXING)
    assert storage.upsert_lemma(conn, other_id, 'кот') != lemma_id
    assert storage.find_lemma(conn, other_id, 'кот').frequency == 1

def test_delete_site_cascades(factory):
    conn = factory()
    site_id = storage.insert_site(conn, 'http://example.com', 'Example', storage.INDEXING)
    page_id = storage.insert_page(conn, site_id, '/', 200, '<p>кот</p>')
    lemma_id = storage.upsert_lemma(conn, site_id, 'кот')
    storage.insert_index_rows(conn, [(page_id, lemma_id, 1.0)])

    assert counts(conn) == {'dsi_site': 1, 'dsi_page': 1, 'dsi_lemma': 1, 'dsi_index': 1}

    storage.delete_site(conn, site_id)

    assert counts(conn) == {'dsi_site': 0, 'dsi_page': 0, 'dsi_lemma': 0, 'dsi_index': 0}

def test_delete_page_returns_frequencies(factory):
    conn = factory()
    site_id = storage.insert_site(conn, 'http://example.com', 'Example', storage.INDEXING)
    a = storage.insert_page(conn, site_id, '/a', 200, '')
    b = storage.insert_page(conn, site_id, '/b', 200, '')

    cat = storage.upsert_lemma(conn, site_id, 'кот')
    storage.upsert_lemma(conn, site_id, 'кот')
    dog = storage.upsert_lemma(conn, site_id, 'собака')
    storage.insert_index_rows(conn, [(a, cat, 2.0), (a, dog, 1.0), (b, cat, 1.0)])

    storage.delete_page(conn, a)

    assert storage.find_lemma(conn, site_id, 'кот').frequency == 1
    assert storage.find_lemma(conn, site_id, 'собака') is None
    assert counts(conn)['dsi_index'] == 1
    assert storage.pages_without_index(conn) == []

def test_insert_index_rows_in_batches(factory):
    conn = factory()
    site_id = storage.insert_site(conn, 'http://example.com', 'Example', storage.INDEXING)
    page_id = storage.insert_page(conn, site_id, '/', 200, '')

    rows = []
    for i in range(250):
        rows.append((page_id, storage.upsert_lemma(conn, site_id, 'слово{}'.format(i)), float(i)))

    assert storage.insert_index_rows(conn, rows) == 250
    # one row per (page, lemma)
    assert storage.insert_index_rows(conn, rows[:10]) == 0

def test_statistics(factory):
    conn = factory()
    site_id = storage.insert_site(conn, 'http://example.com', 'Example', storage.INDEXED)
    storage.insert_page(conn, site_id, '/', 200, '')
    storage.insert_page(conn, site_id, '/a', 200, '')
    storage.upsert_lemma(conn, site_id, 'кот')
    storage.insert_site(conn, 'http://other.com', 'Other', storage.FAILED)

    stats = storage.statistics(conn)

    assert stats['total'] == {'sites': 2, 'pages': 2, 'lemmas': 1}
    assert [(s['url'], s['status'], s['pages'], s['lemmas']) for s in stats['detailed']] == [
        ('http://example.com', storage.INDEXED, 2, 1),
        ('http://other.com', storage.FAILED, 0, 0),
    ]
