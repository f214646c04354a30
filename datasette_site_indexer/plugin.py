import importlib
import pluggy
import sys
from . import hookspecs

DEFAULT_PLUGINS = (
    "datasette_site_indexer.plugins.fetch_url",
    "datasette_site_indexer.plugins.same_host",
    "datasette_site_indexer.plugins.no_fragment",
    "datasette_site_indexer.plugins.allowed_extensions",
)

pm = pluggy.PluginManager("datasette_site_indexer")
pm.add_hookspecs(hookspecs)

if not hasattr(sys, "_called_from_test"):
    # Only load plugins if not running tests
    pm.load_setuptools_entrypoints("datasette_site_indexer")

# Load default plugins
for plugin in DEFAULT_PLUGINS:
    mod = importlib.import_module(plugin)
    pm.register(mod, plugin)
