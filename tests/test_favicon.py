import base64

import httpx

from tabmark.services.favicon import fetch_favicon


def _transport(handler):
    return httpx.MockTransport(handler)


def test_fetch_favicon_returns_data_url():
    seen = {}

    def handler(request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200, content=b"\x89PNG", headers={"content-type": "image/x-icon"}
        )

    favicon = fetch_favicon(
        "https://docs.python.org/3/library/", transport=_transport(handler)
    )

    assert seen["params"] == {"domain": "docs.python.org", "sz": "32"}
    payload = base64.b64encode(b"\x89PNG").decode("ascii")
    assert favicon == f"data:image/x-icon;base64,{payload}"


def test_fetch_favicon_defaults_content_type():
    def handler(request):
        return httpx.Response(200, content=b"icon")

    favicon = fetch_favicon("https://example.com", transport=_transport(handler))

    assert favicon.startswith("data:image/png;base64,")


def test_fetch_favicon_returns_none_on_http_error():
    def handler(request):
        return httpx.Response(404)

    assert fetch_favicon("https://example.com", transport=_transport(handler)) is None


def test_fetch_favicon_returns_none_on_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert fetch_favicon("https://example.com", transport=_transport(handler)) is None


def test_fetch_favicon_skips_urls_without_hostname():
    def handler(request):
        raise AssertionError("no request expected")

    assert fetch_favicon("not a url", transport=_transport(handler)) is None
