import datasette
import glob
import os
from .config import indexer_database, ensure_schema, load_config
from .campaign import CampaignController, set_controller
from .plugin import pm
from .routes import get_routes
from .utils import connection_factory, module_from_path


@datasette.hookimpl
def startup(datasette):
    async def inner():
        db_name = indexer_database(datasette)
        if not db_name:
            return

        db = datasette.databases[db_name]
        await ensure_schema(db)

        # plugins_dir is not a documented attribute of Datasette
        if datasette.plugins_dir:
            for filepath in glob.glob(os.path.join(datasette.plugins_dir, "*.py")):
                if not os.path.isfile(filepath):
                    continue
                mod = module_from_path(filepath, name=os.path.basename(filepath))
                try:
                    pm.register(mod)
                except ValueError:
                    # Plugin already registered
                    pass

        config = load_config(datasette, db_name)
        set_controller(datasette, CampaignController(connection_factory(db.path), config))

    return inner

@datasette.hookimpl
def register_routes(datasette):
    return get_routes(datasette)

@datasette.hookimpl
def skip_csrf(datasette, scope):
    # The indexer routes are a JSON API, not form targets
    return scope['path'].startswith('/-/indexer/')
