from ..hookspecs import hookimpl
import httpx

timeout = httpx.Timeout(10.0)
client = httpx.Client(timeout=timeout, follow_redirects=True)

@hookimpl(trylast=True)
def fetch_url(url, request_headers):
    try:
        response = client.get(url, headers=request_headers)

        return {
            'status_code': response.status_code,
            'content_type': response.headers.get('content-type', ''),
            'text': response.text,
            'url': str(response.url),
        }
    except httpx.HTTPError as e:
        return e
