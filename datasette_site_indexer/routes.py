import asyncio
import json
from functools import partial
from urllib.parse import parse_qs
from datasette import Response
from .campaign import get_controller
from .errors import FetchError, IndexerError

async def run_blocking(fn, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(fn, *args))

def ok(**kwargs):
    return Response.json(dict(result=True, **kwargs))

def error(message, status=400):
    return Response.json({'result': False, 'error': message}, status=status)

def not_configured():
    return error('datasette-site-indexer is not configured for any database', status=404)

async def page_url(request):
    url = request.args.get('url')
    if url:
        return url

    body = await request.post_body()
    if not body:
        return None

    if request.headers.get('content-type', '').startswith('application/json'):
        try:
            return json.loads(body).get('url')
        except (ValueError, AttributeError):
            return None

    values = parse_qs(body.decode('utf-8')).get('url')
    return values[0] if values else None

async def indexer_start(datasette, request):
    if request.method not in ('GET', 'POST'):
        return Response('Unexpected method', status=405)

    controller = get_controller(datasette)
    if not controller:
        return not_configured()

    try:
        await run_blocking(controller.start)
    except IndexerError as e:
        return error(str(e))

    return ok()

async def indexer_stop(datasette, request):
    if request.method not in ('GET', 'POST'):
        return Response('Unexpected method', status=405)

    controller = get_controller(datasette)
    if not controller:
        return not_configured()

    try:
        await run_blocking(controller.stop)
    except IndexerError as e:
        return error(str(e))

    return ok()

async def indexer_index_page(datasette, request):
    if request.method != 'POST':
        return Response('Unexpected method', status=405)

    controller = get_controller(datasette)
    if not controller:
        return not_configured()

    url = await page_url(request)
    if not url:
        return error('url is required')

    try:
        await run_blocking(controller.index_single_page, url)
    except FetchError as e:
        return error(str(e), status=500)
    except IndexerError as e:
        return error(str(e))

    return ok()

async def indexer_index_pending(datasette, request):
    if request.method != 'POST':
        return Response('Unexpected method', status=405)

    controller = get_controller(datasette)
    if not controller:
        return not_configured()

    indexed = await run_blocking(controller.index_pending_pages)
    return ok(pages=indexed)

async def indexer_statistics(datasette, request):
    if request.method != 'GET':
        return Response('Unexpected method', status=405)

    controller = get_controller(datasette)
    if not controller:
        return not_configured()

    statistics = await run_blocking(controller.statistics)
    return ok(statistics=statistics)

def get_routes(datasette):
    return [
        (r"^/-/indexer/start$", indexer_start),
        (r"^/-/indexer/stop$", indexer_stop),
        (r"^/-/indexer/index-page$", indexer_index_page),
        (r"^/-/indexer/index-pending$", indexer_index_pending),
        (r"^/-/indexer/statistics$", indexer_statistics),
    ]
