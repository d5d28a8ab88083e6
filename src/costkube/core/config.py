# src/costkube/core/config.py

import logging
import os
import re

from dotenv import load_dotenv

# Load environment variables from a .env file located in the project root
dotenv_path = os.path.join(os.path.dirname(__file__), "..", "..", "..", ".env")
load_dotenv(dotenv_path=dotenv_path)

_TRUTHY = ("true", "1", "t", "y", "yes")

# Go-style durations as accepted by the Prometheus query layer, plus days.
DURATION_PATTERN = re.compile(r"^(\d+)([smhd])$")


class Config:
    """
    Handles the application's configuration by loading values from environment variables.
    """

    def __init__(self):
        # -- Prometheus variables ---
        self.PROMETHEUS_BEARER_TOKEN = self._get_secret("PROMETHEUS_BEARER_TOKEN")
        self.PROMETHEUS_USERNAME = self._get_secret("PROMETHEUS_USERNAME")
        self.PROMETHEUS_PASSWORD = self._get_secret("PROMETHEUS_PASSWORD")

    @staticmethod
    def _get_secret(key: str, default: str = None) -> str:
        """
        Retrieves a secret from a file (Docker secret/volume) or falls back to environment variable.

        Raises:
            PermissionError: If the secret file exists but cannot be read due to permissions.
            IOError: If the secret file exists but cannot be read due to I/O errors.
        """
        secret_file = f"/etc/costkube/secrets/{key}"
        if os.path.exists(secret_file):
            try:
                with open(secret_file, "r") as f:
                    value = f.read().strip()
                    logging.getLogger(__name__).debug(f"Loaded secret '{key}' from {secret_file}")
                    return value
            except PermissionError as e:
                raise PermissionError(
                    f"Secret file '{secret_file}' exists but cannot be read due to permission denied. "
                    f"Please check file permissions or run with appropriate privileges."
                ) from e
            except (IOError, OSError) as e:
                raise IOError(
                    f"Secret file '{secret_file}' exists but cannot be read: {e}. "
                    f"Please check the file integrity and system resources."
                ) from e
        return os.getenv(key, default)

    # --- Logging variables ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # --- Cluster identity ---
    CLUSTER_ID = os.getenv("CLUSTER_ID", "cluster-one")

    # -- Prometheus variables ---
    PROMETHEUS_URL = os.getenv("PROMETHEUS_URL", "")
    PROMETHEUS_VERIFY_CERTS = os.getenv("PROMETHEUS_VERIFY_CERTS", "True").lower() in _TRUTHY
    # Long range queries can take a while on large clusters.
    PROMETHEUS_TIMEOUT = float(os.getenv("PROMETHEUS_TIMEOUT", "120"))

    # --- HTTP client defaults ---
    DEFAULT_TIMEOUT_CONNECT = float(os.getenv("DEFAULT_TIMEOUT_CONNECT", "10"))
    DEFAULT_TIMEOUT_READ = float(os.getenv("DEFAULT_TIMEOUT_READ", "30"))
    USER_AGENT = os.getenv("USER_AGENT", "costkube")

    # --- Aggregation cache ---
    CACHE_TTL = os.getenv("CACHE_TTL", "2m")
    CACHE_CLEANUP_INTERVAL = os.getenv("CACHE_CLEANUP_INTERVAL", "10m")

    # --- Price recorder ---
    RECORD_INTERVAL = os.getenv("RECORD_INTERVAL", "1m")
    RECORD_WINDOW = os.getenv("RECORD_WINDOW", "2m")

    # --- Pricing ---
    PRICING_CONFIG_PATH = os.getenv("PRICING_CONFIG_PATH")
    CUSTOM_PRICING_ENABLED = os.getenv("CUSTOM_PRICING_ENABLED", "false").lower() in _TRUTHY
    CUSTOM_CPU = os.getenv("CUSTOM_CPU", "0.031611")
    CUSTOM_RAM = os.getenv("CUSTOM_RAM", "0.004237")
    CUSTOM_GPU = os.getenv("CUSTOM_GPU", "0.95")
    CUSTOM_STORAGE = os.getenv("CUSTOM_STORAGE", "0.00005479452")
    CUSTOM_SPOT_CPU = os.getenv("CUSTOM_SPOT_CPU", "0.006655")
    CUSTOM_SPOT_RAM = os.getenv("CUSTOM_SPOT_RAM", "0.000892")
    CUSTOM_SPOT_GPU = os.getenv("CUSTOM_SPOT_GPU", "0.308")
    CUSTOM_ZONE_EGRESS = os.getenv("CUSTOM_ZONE_EGRESS", "0.01")
    CUSTOM_REGION_EGRESS = os.getenv("CUSTOM_REGION_EGRESS", "0.01")
    CUSTOM_INTERNET_EGRESS = os.getenv("CUSTOM_INTERNET_EGRESS", "0.12")
    DISCOUNT = os.getenv("DISCOUNT", "0%")

    # --- API server ---
    API_HOST = os.getenv("API_HOST", "0.0.0.0")
    API_PORT = int(os.getenv("API_PORT", "9003"))

    def validate_instance(self):
        for key in ("CACHE_TTL", "CACHE_CLEANUP_INTERVAL", "RECORD_INTERVAL", "RECORD_WINDOW"):
            value = getattr(self, key)
            if not DURATION_PATTERN.match(str(value).lower()):
                raise ValueError(f"{key} format is invalid: '{value}'. Use 's', 'm', 'h' or 'd'.")
        if not self.DISCOUNT.strip().endswith("%"):
            raise ValueError("DISCOUNT must be a percentage string such as '30%'.")
        if not self.PROMETHEUS_URL:
            logging.warning("PROMETHEUS_URL is not set.")


# Instantiate the config to be imported by other modules
config = Config()
config.validate_instance()
