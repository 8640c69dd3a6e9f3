"""
Blob Publisher — publish data and run logs to Azure Blob Storage.

Uploads the local ``data`` directory and this run's ``logs`` directory to a
public container, keeps only the most recent log directories, and rewrites
``index.html`` with links to everything that was published.

Usage:
    python -m blob_publisher [container_name] [--timestamp TS] [--dry-run]
"""

from .config import Config
from .container import BlobContainer, url_of_blob
from .index_page import create_index, upload_index
from .uploader import (
    PublishResult,
    remove_old_directories,
    upload_blobs,
    upload_directory,
    publish,
)

__all__ = [
    "BlobContainer",
    "Config",
    "PublishResult",
    "create_index",
    "publish",
    "remove_old_directories",
    "upload_blobs",
    "upload_directory",
    "upload_index",
    "url_of_blob",
]
