"""Thin wrapper around the Azure container that a publishing run writes to."""

import logging
from pathlib import Path
from typing import Optional, Union

from azure.core.exceptions import ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContainerClient, ContentSettings, CorsRule

from .config import Config

logger = logging.getLogger(__name__)


def url_of_blob(account_name: str, container_name: str, blob_name: str,
                endpoint_suffix: str = "core.windows.net") -> str:
    """Public URL of a blob. Pure: depends only on its arguments."""
    return f"https://{account_name}.blob.{endpoint_suffix}/{container_name}/{blob_name}"


def _guess_content_type(path: Union[str, Path]) -> str:
    suffix = Path(path).suffix.lower()
    return {
        ".csv": "text/csv",
        ".html": "text/html",
        ".json": "application/json",
        ".md": "text/markdown",
        ".txt": "text/plain",
        ".log": "text/plain",
        ".gz": "application/gzip",
        ".zip": "application/zip",
    }.get(suffix, "application/octet-stream")


class BlobContainer:
    """The operations a publishing run needs from one container."""

    def __init__(
        self,
        service_client: BlobServiceClient,
        container_name: str,
        account_name: str,
        endpoint_suffix: str = "core.windows.net",
        cors_allowed_origins: Optional[list[str]] = None,
    ) -> None:
        self.service_client = service_client
        self.container_name = container_name
        self.account_name = account_name
        self.endpoint_suffix = endpoint_suffix
        self.cors_allowed_origins = cors_allowed_origins or ["*"]
        self.client: ContainerClient = service_client.get_container_client(container_name)

    @classmethod
    def create(cls, cfg: Config) -> "BlobContainer":
        svc = BlobServiceClient.from_connection_string(
            cfg.conn_str,
            connection_timeout=30,
            read_timeout=120,
        )
        return cls(
            svc,
            cfg.container_name,
            cfg.account_name,
            endpoint_suffix=cfg.endpoint_suffix,
            cors_allowed_origins=cfg.cors_allowed_origins,
        )

    def url_of(self, blob_name: str) -> str:
        return url_of_blob(self.account_name, self.container_name, blob_name, self.endpoint_suffix)

    def ensure_created(self, public_access: str = "blob") -> None:
        try:
            self.client.create_container(public_access=public_access)
            logger.info(f"Created container '{self.container_name}'.")
        except ResourceExistsError:
            logger.debug(f"Container '{self.container_name}' already exists.")

    def set_cors_properties(self) -> None:
        """Allow browsers on the configured origins to read the published blobs."""
        rule = CorsRule(
            allowed_origins=self.cors_allowed_origins,
            allowed_methods=["GET", "HEAD", "OPTIONS"],
            allowed_headers=["*"],
            exposed_headers=["*"],
            max_age_in_seconds=3600,
        )
        self.service_client.set_service_properties(cors=[rule])

    def create_blob_from_file(self, blob_name: str, file_path: Union[str, Path]) -> None:
        with open(file_path, "rb") as fh:
            self.client.upload_blob(
                name=blob_name,
                data=fh,
                overwrite=True,
                content_settings=ContentSettings(content_type=_guess_content_type(file_path)),
            )

    def create_blob_from_text(self, blob_name: str, content: str) -> None:
        self.client.upload_blob(
            name=blob_name,
            data=content.encode("utf-8"),
            overwrite=True,
            content_settings=ContentSettings(content_type=_guess_content_type(blob_name)),
        )

    def list_blobs(self, prefix: str) -> list:
        """Blobs whose names start with prefix; each item exposes ``.name``."""
        return list(self.client.list_blobs(name_starts_with=prefix))

    def delete_blob(self, blob_name: str) -> None:
        self.client.delete_blob(blob_name)
