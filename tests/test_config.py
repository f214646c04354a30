import pytest
from datasette_site_indexer.config import DEFAULT_USER_AGENT, SiteRoot, parse_config
from datasette_site_indexer.errors import ConfigError

def test_defaults():
    config = parse_config(None)

    assert config.sites == ()
    assert config.max_depth == 10
    assert config.fetch_delay == 0.5
    assert config.workers >= 1
    assert config.user_agent == DEFAULT_USER_AGENT
    assert config.index_on_crawl is True

def test_sites():
    config = parse_config({
        'sites': [
            {'url': 'http://example.com', 'name': 'Example'},
            {'url': 'https://other.com/'},
        ],
        'max-depth': '3',
        'workers': 2,
        'index-on-crawl': False,
    })

    assert config.sites == (
        SiteRoot(url='http://example.com', name='Example'),
        SiteRoot(url='https://other.com/', name='https://other.com/'),
    )
    assert config.max_depth == 3
    assert config.workers == 2
    assert config.index_on_crawl is False

@pytest.mark.parametrize('raw', [
    {'sites': 'http://example.com'},
    {'sites': [{'name': 'no url'}]},
    {'sites': [{'url': 'ftp://example.com'}]},
    {'max-depth': 0},
    {'max-depth': 'deep'},
    {'fetch-delay': -1},
    {'workers': -2},
])
def test_invalid(raw):
    with pytest.raises(ConfigError):
        parse_config(raw)
