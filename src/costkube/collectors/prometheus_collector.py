# src/costkube/collectors/prometheus_collector.py

"""
PrometheusCollector runs instant and range PromQL queries against the
Prometheus HTTP API and converts result samples into Vector series.
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import Config
from ..core.config import config as global_config
from ..core.exceptions import QueryError
from ..models.vector import Vector
from ..utils.date_utils import to_iso_z
from ..utils.http_client import get_async_http_client
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)

# Path prefixes tried in order against the configured base URL.
API_PREFIXES = ("/api/v1", "/prometheus/api/v1")


def parse_sample(sample: Any) -> Optional[Vector]:
    """
    Convert a Prometheus ``[<timestamp>, "<value>"]`` pair into a Vector.
    Returns None for NaN/Inf or malformed samples.
    """
    try:
        ts, raw = sample[0], sample[1]
        value = float(raw)
        timestamp = float(ts)
    except (TypeError, ValueError, IndexError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return Vector(timestamp=timestamp, value=value)


def vectors_from_result(item: Dict[str, Any]) -> List[Vector]:
    """Samples of one result series (instant 'value' or range 'values')."""
    if "values" in item:
        samples = item.get("values") or []
    elif "value" in item:
        samples = [item["value"]]
    else:
        samples = []
    vectors = []
    for sample in samples:
        v = parse_sample(sample)
        if v is not None:
            vectors.append(v)
    return vectors


def _format_time(value) -> str:
    if isinstance(value, datetime):
        return to_iso_z(value.replace(microsecond=0))
    return str(value)


class PrometheusCollector(BaseCollector):
    """
    Thin async client for the Prometheus query API.
    """

    def __init__(self, settings: Optional[Config] = None):
        self.settings = settings or global_config
        self.base_url = self.settings.PROMETHEUS_URL
        self.timeout = self.settings.PROMETHEUS_TIMEOUT
        self.verify = getattr(self.settings, "PROMETHEUS_VERIFY_CERTS", True)
        self.bearer_token = getattr(self.settings, "PROMETHEUS_BEARER_TOKEN", None)
        self.username = getattr(self.settings, "PROMETHEUS_USERNAME", None)
        self.password = getattr(self.settings, "PROMETHEUS_PASSWORD", None)

    def _client(self) -> httpx.AsyncClient:
        auth = (self.username, self.password) if self.username and self.password else None
        return get_async_http_client(
            read_timeout=self.timeout,
            verify=self.verify,
            auth=auth,
            bearer_token=self.bearer_token,
        )

    async def _request(self, endpoint: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Query ``endpoint`` ('query' or 'query_range') on each candidate path.

        Returns:
            The 'result' list of the first successful response.

        Raises:
            QueryError: If no URL is configured or every candidate fails.
        """
        if not self.base_url:
            raise QueryError("PROMETHEUS_URL is not set.")

        base = self.base_url.rstrip("/")
        last_err = None
        async with self._client() as client:
            for prefix in API_PREFIXES:
                url = f"{base}{prefix}/{endpoint}"
                try:
                    logger.debug(f"Querying Prometheus at {url}: {params.get('query')}")
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    data = response.json()
                except httpx.HTTPError as e:
                    last_err = e
                    logger.debug(f"Failed to query Prometheus at {url}: {e}")
                    continue
                except ValueError as e:
                    last_err = e
                    logger.error(f"Prometheus at {url} returned a non-JSON response.")
                    continue

                if data.get("status") != "success":
                    last_err = QueryError(data.get("error", "Unknown error"))
                    logger.warning(f"Prometheus returned non-success status for {url}: {data.get('error', 'Unknown')}")
                    continue

                results = data.get("data", {}).get("result", [])
                logger.debug(f"Prometheus at {url} returned {len(results)} result(s)")
                return results

        logger.error(f"All Prometheus endpoints failed. Last error: {last_err}")
        raise QueryError(f"Prometheus query failed at {base}: {last_err}")

    async def query(self, query: str) -> List[Dict[str, Any]]:
        """Run an instant query."""
        return await self._request("query", {"query": query})

    async def query_range(self, query: str, start, end, step: str) -> List[Dict[str, Any]]:
        """Run a range query between ``start`` and ``end`` at ``step`` resolution."""
        params = {"query": query, "start": _format_time(start), "end": _format_time(end), "step": step}
        return await self._request("query_range", params)

    async def is_available(self) -> bool:
        """Probe Prometheus with the 'up' query."""
        try:
            await self.query("up")
        except QueryError:
            return False
        return True

    async def collect(self) -> List[Dict[str, Any]]:
        """Return the 'up' series; used as a connectivity check."""
        return await self.query("up")
