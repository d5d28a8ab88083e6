"""
Cluster access for the inventory collector.

The inventory is read-only (nodes, pods, services, deployments, volumes and
storage classes), so a single ApiClient is shared by the typed wrappers.
"""

import asyncio
import logging
from typing import Optional

from kubernetes_asyncio import client, config

logger = logging.getLogger(__name__)

_load_lock = asyncio.Lock()
_loaded = False


async def _load_config() -> bool:
    global _loaded

    async with _load_lock:
        if _loaded:
            return True

        # In-cluster service account first, then the operator's kubeconfig.
        try:
            config.load_incluster_config()
            logger.info("Using in-cluster Kubernetes configuration.")
            _loaded = True
            return True
        except config.ConfigException:
            logger.debug("No in-cluster service account; trying kubeconfig.")

        try:
            await config.load_kube_config()
            logger.info("Using kubeconfig Kubernetes configuration.")
            _loaded = True
        except (config.ConfigException, OSError) as e:
            logger.warning(f"No usable Kubernetes configuration: {e}")
        return _loaded


async def get_api_client() -> Optional[client.ApiClient]:
    """
    Return an ApiClient for the current cluster, or None when neither an
    in-cluster nor a kubeconfig configuration can be loaded. Callers treat
    None as an empty inventory.
    """
    if _loaded or await _load_config():
        return client.ApiClient()
    return None
