current_schema_version = 1000000;

schema = """
PRAGMA user_version = {};
""".format(current_schema_version) + """

-- A configured site root and the outcome of its latest crawl
CREATE TABLE dsi_site(
  -- never reused, so threads of a stopped crawl cannot write into a newer site
  id integer primary key autoincrement,
  url text not null,
  name text not null,
  status text not null check (status IN ('INDEXING', 'INDEXED', 'FAILED')),
  -- When status last changed
  status_time text not null default (strftime('%Y-%m-%d %H:%M:%f')),
  last_error text
);

-- A fetched HTML page. path is relative to the site url, '/' for the root.
CREATE TABLE dsi_page(
  id integer primary key autoincrement,
  site_id integer not null references dsi_site(id) on delete cascade,
  path text not null,
  code integer not null,
  content text not null,
  unique (site_id, path)
);

-- A dictionary form of a word; frequency is the number of the site's pages
-- that contain it.
CREATE TABLE dsi_lemma(
  id integer primary key autoincrement,
  site_id integer not null references dsi_site(id) on delete cascade,
  lemma text not null,
  frequency integer not null,
  unique (site_id, lemma)
);

-- How many times a lemma occurs in a page
CREATE TABLE dsi_index(
  id integer primary key,
  page_id integer not null references dsi_page(id) on delete cascade,
  lemma_id integer not null references dsi_lemma(id) on delete cascade,
  rank real not null,
  unique (page_id, lemma_id)
);

CREATE INDEX idx_dsi_site_url ON dsi_site(url);
CREATE INDEX idx_dsi_site_status ON dsi_site(status);
CREATE INDEX idx_dsi_index_lemma ON dsi_index(lemma_id);
"""
