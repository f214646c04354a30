from ..hookspecs import hookimpl

@hookimpl
def filter_url(url):
    if '#' in url:
        return False
