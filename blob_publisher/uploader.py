"""
Publishing run: upload the data and logs directories, prune old log
directories, and regenerate the index page.

Container layout after a run:

    data/<file>                       one blob per file in the data directory
    logs/<timestamp>/<file>           one directory per run, newest kept
    logs/<timestamp>/upload-blobs.md  the log of the run itself
    index.html                        links to everything above

Log directories are named by timestamp and pruned by sorting their names as
plain strings, so names must sort chronologically (ISO-8601 style).
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from .config import Config
from .container import BlobContainer
from .index_page import upload_index
from .run_log import RunLog

logger = logging.getLogger(__name__)

DATA_DIRECTORY_NAME = "data"
LOGS_DIRECTORY_NAME = "logs"
LOGS_PREFIX = LOGS_DIRECTORY_NAME + "/"
BLOB_LOGS = "upload-blobs.md"
TIME_STAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"


@dataclass
class PublishResult:
    time_stamp: str
    index_url: str
    data_urls: list[str] = field(default_factory=list)
    log_urls: list[str] = field(default_factory=list)


def current_time_stamp() -> str:
    return datetime.now(timezone.utc).strftime(TIME_STAMP_FORMAT)


def logs_uploaded_location(time_stamp: str) -> str:
    return LOGS_PREFIX + time_stamp


def _join_blob_path(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p.strip("/"))


def _map_concurrently(fn: Callable, items: list, concurrency: int) -> list:
    """Run fn over items on a thread pool; results keep the order of items."""
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=min(concurrency, len(items))) as pool:
        futures = [pool.submit(fn, item) for item in items]
        return [f.result() for f in futures]


# ---------------------------------------------------------------------------
# Uploading
# ---------------------------------------------------------------------------

def list_files(dir_path, file_filter: Optional[Callable[[str], bool]] = None) -> list[str]:
    """Names of the regular files directly in dir_path, sorted."""
    names = sorted(p.name for p in Path(dir_path).iterdir() if p.is_file())
    if file_filter:
        names = [n for n in names if file_filter(n)]
    return names


def upload_file(container: BlobContainer, blob_name: str, file_path) -> str:
    url = container.url_of(blob_name)
    container.create_blob_from_file(blob_name, file_path)
    return url


def log_and_upload_file(container: BlobContainer, blob_name: str, file_path) -> str:
    logger.info(f"Uploading {file_path} to {container.url_of(blob_name)}")
    return upload_file(container, blob_name, file_path)


def upload_directory(
    container: BlobContainer,
    uploaded_dir_path: str,
    dir_path,
    file_filter: Optional[Callable[[str], bool]] = None,
    concurrency: int = 8,
) -> list[str]:
    """Upload every file in dir_path to uploaded_dir_path/<name>.

    Returns the blob URLs in the same order as the sorted file listing.
    A failed upload propagates; files already uploaded stay uploaded.
    """
    file_names = list_files(dir_path, file_filter)

    def upload_one(file_name: str) -> str:
        return log_and_upload_file(
            container,
            _join_blob_path(uploaded_dir_path, file_name),
            Path(dir_path) / file_name,
        )

    return _map_concurrently(upload_one, file_names, concurrency)


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------

def delete_directory(container: BlobContainer, uploaded_dir_path: str, concurrency: int = 8) -> list[str]:
    """Delete every blob under uploaded_dir_path/. Returns the deleted names."""
    dir_prefix = uploaded_dir_path.rstrip("/") + "/"
    blob_names = [b.name for b in container.list_blobs(dir_prefix)]
    logger.info(f"Deleting directory {uploaded_dir_path}: delete files {blob_names}")
    _map_concurrently(container.delete_blob, blob_names, concurrency)
    return blob_names


def directory_names(blob_names: list[str], prefix: str) -> list[str]:
    """Distinct first path segments below prefix, in first-seen order."""
    seen: dict[str, None] = {}
    for name in blob_names:
        if not name.startswith(prefix):
            raise AssertionError(f"Listed blob {name!r} does not start with {prefix!r}")
        dir_name, sep, _ = name[len(prefix):].partition("/")
        if not sep:
            logger.debug(f"Ignoring {name}: not inside a directory under {prefix}")
            continue
        seen.setdefault(dir_name, None)
    return list(seen)


def remove_old_directories(
    container: BlobContainer,
    prefix: str,
    max_directories: int,
    concurrency: int = 8,
) -> list[str]:
    """Keep the max_directories greatest directory names under prefix.

    Returns the names of the directories that were deleted.
    """
    dir_names = directory_names([b.name for b in container.list_blobs(prefix)], prefix)
    if len(dir_names) <= max_directories:
        logger.info(
            f"No need to remove old directories: have {len(dir_names)}, can go up to {max_directories}."
        )
        return []

    # Timestamp names: string order is chronological order
    sorted_names = sorted(dir_names)
    to_delete = sorted_names[:len(sorted_names) - max_directories]
    logger.info(f"Too many old logs, so removing the following directories: {to_delete}")
    _map_concurrently(
        lambda d: delete_directory(container, prefix + d, concurrency),
        to_delete,
        concurrency,
    )
    return to_delete


def upload_logs(
    container: BlobContainer,
    time_stamp: str,
    logs_dir,
    max_log_directories: int,
    concurrency: int = 8,
) -> list[str]:
    # The new directory is about to be added, so keep one fewer
    remove_old_directories(container, LOGS_PREFIX, max_log_directories - 1, concurrency)
    return upload_directory(
        container,
        logs_uploaded_location(time_stamp),
        logs_dir,
        file_filter=lambda f: f != BLOB_LOGS,
        concurrency=concurrency,
    )


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def upload_blobs(container: BlobContainer, cfg: Config, time_stamp: str) -> tuple[list[str], list[str]]:
    """Upload data and logs concurrently, then the log of this upload itself."""
    with RunLog() as run_log:
        with ThreadPoolExecutor(max_workers=2) as pool:
            data_future = pool.submit(
                upload_directory,
                container,
                DATA_DIRECTORY_NAME,
                cfg.data_dir,
                concurrency=cfg.concurrency,
            )
            logs_future = pool.submit(
                upload_logs,
                container,
                time_stamp,
                cfg.logs_dir,
                cfg.max_log_directories,
                cfg.concurrency,
            )
            data_urls = data_future.result()
            log_urls = logs_future.result()

    local_log = run_log.write(Path(cfg.logs_dir) / BLOB_LOGS)
    log_urls.append(
        upload_file(container, _join_blob_path(logs_uploaded_location(time_stamp), BLOB_LOGS), local_log)
    )
    return data_urls, log_urls


def publish(cfg: Config, time_stamp: Optional[str] = None,
            container: Optional[BlobContainer] = None) -> PublishResult:
    time_stamp = time_stamp or current_time_stamp()
    if container is None:
        container = BlobContainer.create(cfg)

    container.ensure_created(public_access="blob")
    container.set_cors_properties()

    data_urls, log_urls = upload_blobs(container, cfg, time_stamp)
    index_url = upload_index(container, time_stamp, data_urls, log_urls)
    logger.info(f"Index updated: {index_url}")
    return PublishResult(time_stamp, index_url, data_urls, log_urls)
