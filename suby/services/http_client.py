"""Lightweight HTTP client util for JSON GETs.

Uses stdlib urllib; the only remote call the service makes is the exchange
rate fetch, which is a single GET. Retries are opt-in and default to none.
"""

from __future__ import annotations
import http.client
import json
import logging
import time
import urllib.request
from typing import Any, Dict, Optional

logger = logging.getLogger("suby.http")

USER_AGENT = "suby/0.1 (+rates)"


class HttpError(Exception):
    pass


def get_json(
    url: str, *, timeout: float = 5.0, retries: int = 0, backoff: float = 0.5
) -> Dict[str, Any]:
    last_err: Optional[Exception] = None
    req = urllib.request.Request(
        url, headers={"Accept": "application/json", "User-Agent": USER_AGENT}
    )
    for attempt in range(retries + 1):
        try:
            with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
                if resp.status >= 400:
                    raise HttpError(f"HTTP {resp.status} for {url}")
                data = json.loads(resp.read().decode("utf-8"))
                if not isinstance(data, dict):
                    raise HttpError(f"expected a JSON object from {url}")
                return data
        except (
            OSError,  # URLError, timeouts, resets
            http.client.HTTPException,  # RemoteDisconnected, IncompleteRead
            HttpError,
            ValueError,  # JSON decode
        ) as e:
            last_err = e
            logger.debug("GET %s failed (attempt %d): %s", url, attempt + 1, e)
            if attempt == retries:
                break
            time.sleep(backoff * (2**attempt))
    raise HttpError(f"Failed to fetch JSON from {url}: {last_err}")
