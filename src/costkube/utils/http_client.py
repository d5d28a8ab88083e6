import logging
from typing import Optional, Tuple

import httpx

from ..core.config import config

logger = logging.getLogger(__name__)


def get_async_http_client(
    read_timeout: Optional[float] = None,
    verify: bool = True,
    auth: Optional[Tuple[str, str]] = None,
    bearer_token: Optional[str] = None,
) -> httpx.AsyncClient:
    """
    Build the AsyncClient used to talk to Prometheus.

    Timeouts default to the configured connect/read limits. Basic auth and a
    bearer token are mutually usable; the bearer token travels as a header.
    """
    timeout = httpx.Timeout(
        read_timeout if read_timeout is not None else config.DEFAULT_TIMEOUT_READ,
        connect=config.DEFAULT_TIMEOUT_CONNECT,
    )
    headers = {"User-Agent": config.USER_AGENT}
    if bearer_token:
        headers["Authorization"] = f"Bearer {bearer_token}"
    logger.debug(f"Creating Prometheus HTTP client (verify={verify}, auth={bool(auth or bearer_token)})")
    return httpx.AsyncClient(timeout=timeout, headers=headers, verify=verify, auth=auth, follow_redirects=True)
