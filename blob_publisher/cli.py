import argparse
import sys
from datetime import datetime
from pathlib import Path

from azure.core.exceptions import AzureError

from .config import Config
from .run_log import build_logger
from .uploader import (
    BLOB_LOGS,
    DATA_DIRECTORY_NAME,
    TIME_STAMP_FORMAT,
    current_time_stamp,
    list_files,
    logs_uploaded_location,
    publish,
)


def _time_stamp(value: str) -> str:
    """Log directory names must sort chronologically, so only one format is accepted."""
    try:
        datetime.strptime(value, TIME_STAMP_FORMAT)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid timestamp {value!r}: expected UTC time as YYYY-MM-DDTHH-MM-SS"
        )
    return value


def _parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="blob-publisher",
        description=(
            "Upload the data and logs directories to Azure Blob Storage, prune old "
            "log directories and regenerate the container's index.html."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  # Publish ./data and ./logs to the container from .env\n"
            "  python -m blob_publisher\n\n"
            "  # Publish to another container under a fixed timestamp\n"
            "  python -m blob_publisher my-container --timestamp 2024-01-01T00-00-00\n\n"
            "  # Dry run — validate config and list what would be uploaded\n"
            "  python -m blob_publisher --dry-run\n"
        ),
    )
    parser.add_argument(
        "container_name",
        nargs="?",
        default=None,
        help="Target Azure container name. Overrides CONTAINER_NAME in .env.",
    )
    parser.add_argument(
        "--timestamp",
        default=None,
        type=_time_stamp,
        metavar="TS",
        help="Name of this run's log directory. Defaults to the current UTC time.",
    )
    parser.add_argument("--data-dir", default=None, help="Local data directory. Overrides DATA_DIR.")
    parser.add_argument("--logs-dir", default=None, help="Local logs directory. Overrides LOGS_DIR.")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate config and list files that would be uploaded, without uploading.",
    )
    return parser.parse_args(argv)


def _dry_run(logger, cfg: Config, time_stamp: str) -> None:
    logger.info("[DRY RUN] Files that would be uploaded:")
    plan = [(cfg.data_dir, DATA_DIRECTORY_NAME, None),
            (cfg.logs_dir, logs_uploaded_location(time_stamp), lambda f: f != BLOB_LOGS)]
    for dir_path, uploaded_dir_path, file_filter in plan:
        for name in list_files(dir_path, file_filter):
            logger.info(f"  {Path(dir_path) / name}  →  {uploaded_dir_path}/{name}")
    logger.info(f"  (run log)  →  {logs_uploaded_location(time_stamp)}/{BLOB_LOGS}")
    logger.info("[DRY RUN] No files were uploaded.")


def main(argv=None) -> None:
    args = _parse_args(argv)

    # Config — validate everything (including connection string) before touching Azure
    try:
        cfg = Config()
    except KeyError:
        print(
            "ERROR: AZURE_CONN_STR not set. Add it to .env or the environment.",
            file=sys.stderr,
        )
        sys.exit(1)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    if args.container_name:
        cfg.container_name = args.container_name
    if args.data_dir:
        cfg.data_dir = args.data_dir
    if args.logs_dir:
        cfg.logs_dir = args.logs_dir

    logger = build_logger(cfg.log_path)
    time_stamp = args.timestamp or current_time_stamp()

    logger.info("=" * 60)
    logger.info("  Blob Publisher")
    logger.info("=" * 60)
    logger.info(f"Container : {cfg.container_name}")
    logger.info(f"Data      : {cfg.data_dir}")
    logger.info(f"Logs      : {cfg.logs_dir}  (keeping {cfg.max_log_directories} runs)")
    logger.info(f"Timestamp : {time_stamp}")

    try:
        if args.dry_run:
            _dry_run(logger, cfg, time_stamp)
            sys.exit(0)
        result = publish(cfg, time_stamp)
    except (AzureError, OSError) as exc:
        logger.error(f"Publish failed: {exc}")
        sys.exit(2)

    logger.info("=" * 60)
    logger.info(
        f"  Published {len(result.data_urls)} data file(s) and {len(result.log_urls)} log file(s)"
    )
    logger.info("=" * 60)
    print(f"\nIndex: {result.index_url}")
