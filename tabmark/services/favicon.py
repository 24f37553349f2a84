from __future__ import annotations

import base64
import logging
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_URL = "https://www.google.com/s2/favicons"
DEFAULT_CONTENT_TYPE = "image/png"
DEFAULT_HEADERS = {
    "User-Agent": "TabmarkBot/1.0",
    "Accept": "image/*,*/*;q=0.8",
}


def _normalize_error(exc: Exception) -> str:
    message = str(exc).strip()
    if message:
        return message
    return exc.__class__.__name__


def _hostname(url: str) -> str | None:
    try:
        return urlparse(url).hostname
    except (TypeError, ValueError):
        return None


def fetch_favicon(
    url: str,
    timeout: float = 5.0,
    service_url: str = DEFAULT_SERVICE_URL,
    size: int = 32,
    transport: httpx.BaseTransport | None = None,
) -> str | None:
    """Return the site's favicon as a ``data:`` URL, or ``None``.

    Failures are logged and reported as a missing favicon; nothing is raised
    to the caller.
    """
    hostname = _hostname(url)
    if not hostname:
        logger.warning("Cannot fetch favicon for %s: no hostname", url)
        return None

    try:
        with httpx.Client(
            follow_redirects=True,
            timeout=timeout,
            headers=DEFAULT_HEADERS,
            transport=transport,
        ) as client:
            response = client.get(service_url, params={"domain": hostname, "sz": size})
    except Exception as exc:
        logger.warning("Error fetching favicon for %s: %s", url, _normalize_error(exc))
        return None

    if not response.is_success:
        logger.warning(
            "Failed to fetch favicon for %s: HTTP %s", url, response.status_code
        )
        return None

    content_type = response.headers.get("content-type") or DEFAULT_CONTENT_TYPE
    payload = base64.b64encode(response.content).decode("ascii")
    return f"data:{content_type};base64,{payload}"
