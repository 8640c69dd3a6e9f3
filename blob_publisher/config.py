"""Environment-driven configuration for a publishing run."""

import base64
import binascii
import os
from typing import Optional

from dotenv import load_dotenv

_DEFAULTS = {
    "CONTAINER_NAME": "publisher",
    "DATA_DIR": "data",
    "LOGS_DIR": "logs",
    "MAX_LOG_DIRECTORIES": 5,
    "CONCURRENCY": 8,
    "CORS_ALLOWED_ORIGINS": "*",
}

_PORTAL_HINT = "Copy a fresh connection string from Azure Portal → Storage account → Access keys."


class Config:
    def __init__(self) -> None:
        load_dotenv()

        self.conn_str: str = os.environ["AZURE_CONN_STR"]
        self.container_name: str = os.getenv("CONTAINER_NAME", _DEFAULTS["CONTAINER_NAME"])
        self.data_dir: str = os.getenv("DATA_DIR", _DEFAULTS["DATA_DIR"])
        self.logs_dir: str = os.getenv("LOGS_DIR", _DEFAULTS["LOGS_DIR"])
        self.max_log_directories: int = int(
            os.getenv("MAX_LOG_DIRECTORIES", _DEFAULTS["MAX_LOG_DIRECTORIES"])
        )
        self.concurrency: int = int(
            os.getenv("CONCURRENCY", _DEFAULTS["CONCURRENCY"])
        )
        self.cors_allowed_origins: list[str] = [
            o.strip()
            for o in os.getenv("CORS_ALLOWED_ORIGINS", _DEFAULTS["CORS_ALLOWED_ORIGINS"]).split(",")
            if o.strip()
        ]
        self.log_path: Optional[str] = os.getenv("LOG_PATH")

        parts = self._validate_connection_string()
        self.account_name: str = parts["AccountName"]
        self.endpoint_suffix: str = parts.get("EndpointSuffix", "core.windows.net")

        if self.max_log_directories < 1:
            raise ValueError("MAX_LOG_DIRECTORIES must be at least 1.")
        if self.concurrency < 1:
            raise ValueError("CONCURRENCY must be at least 1.")

    def _validate_connection_string(self) -> dict:
        """Parse the connection string and validate it before connecting."""
        cs = self.conn_str.strip()

        parts = {}
        for segment in cs.split(";"):
            segment = segment.strip()
            if not segment:
                continue
            if "=" not in segment:
                raise ValueError(
                    f"Malformed AZURE_CONN_STR: segment '{segment}' has no '=' separator.\n" + _PORTAL_HINT
                )
            key, _, value = segment.partition("=")
            parts[key.strip()] = value.strip()

        for required in ("AccountName", "AccountKey", "DefaultEndpointsProtocol"):
            if not parts.get(required):
                raise ValueError(f"AZURE_CONN_STR is missing the '{required}' field.\n" + _PORTAL_HINT)

        if parts["AccountName"] in ("your_account", "your_account_name"):
            raise ValueError(
                "AZURE_CONN_STR has a placeholder AccountName. "
                "Replace it with your real Azure Storage account name."
            )

        raw_key = parts["AccountKey"]
        if raw_key in ("your_account_key", "your_key"):
            raise ValueError("AZURE_CONN_STR has a placeholder AccountKey.\n" + _PORTAL_HINT)

        padded = raw_key + "=" * (-len(raw_key) % 4)
        try:
            decoded = base64.b64decode(padded, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError(
                "AZURE_CONN_STR AccountKey is not valid base64 — it is corrupted or truncated.\n" + _PORTAL_HINT
            )

        # Storage account keys are 64 bytes
        if len(decoded) != 64:
            raise ValueError(
                f"AZURE_CONN_STR AccountKey decoded to {len(decoded)} bytes (expected 64).\n" + _PORTAL_HINT
            )

        if parts["DefaultEndpointsProtocol"].lower() != "https":
            raise ValueError(
                "AZURE_CONN_STR uses a non-HTTPS protocol. Set DefaultEndpointsProtocol=https."
            )

        return parts
