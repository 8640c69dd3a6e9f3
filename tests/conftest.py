"""
Pytest fixtures for blob_publisher tests.

Azure is replaced by FakeContainer, an in-memory container with the same
operations as BlobContainer.
"""
import logging
import threading
from pathlib import Path
from types import SimpleNamespace

import pytest

from blob_publisher.config import Config
from blob_publisher.container import url_of_blob
from blob_publisher.run_log import LOGGER_NAME

# 64 zero bytes, base64-encoded: the shape of a real account key
ACCOUNT_KEY = "A" * 86 + "=="
CONN_STR = (
    "DefaultEndpointsProtocol=https;AccountName=teststore;"
    f"AccountKey={ACCOUNT_KEY};EndpointSuffix=core.windows.net"
)


class FakeContainer:
    """In-memory stand-in for BlobContainer."""

    def __init__(self, container_name: str = "publisher", account_name: str = "teststore"):
        self.container_name = container_name
        self.account_name = account_name
        self.blobs: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.created_with = None
        self.cors_set = False
        self._lock = threading.Lock()

    def url_of(self, blob_name: str) -> str:
        return url_of_blob(self.account_name, self.container_name, blob_name)

    def ensure_created(self, public_access: str = "blob") -> None:
        self.created_with = public_access

    def set_cors_properties(self) -> None:
        self.cors_set = True

    def create_blob_from_file(self, blob_name, file_path) -> None:
        data = Path(file_path).read_bytes()
        with self._lock:
            self.blobs[blob_name] = data

    def create_blob_from_text(self, blob_name, content: str) -> None:
        with self._lock:
            self.blobs[blob_name] = content.encode("utf-8")

    def list_blobs(self, prefix: str) -> list:
        with self._lock:
            return [SimpleNamespace(name=n) for n in sorted(self.blobs) if n.startswith(prefix)]

    def delete_blob(self, blob_name: str) -> None:
        with self._lock:
            del self.blobs[blob_name]
            self.deleted.append(blob_name)

    def directories(self, prefix: str) -> set:
        return {n[len(prefix):].split("/", 1)[0] for n in self.blobs if n.startswith(prefix)}


@pytest.fixture
def container():
    return FakeContainer()


@pytest.fixture
def env(monkeypatch):
    """A valid environment with every optional variable unset."""
    monkeypatch.setenv("AZURE_CONN_STR", CONN_STR)
    for name in (
        "CONTAINER_NAME",
        "DATA_DIR",
        "LOGS_DIR",
        "MAX_LOG_DIRECTORIES",
        "CONCURRENCY",
        "CORS_ALLOWED_ORIGINS",
        "LOG_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def workdir(tmp_path):
    """A data directory with two files and a logs directory from a previous run."""
    data = tmp_path / "data"
    data.mkdir()
    (data / "a.json").write_text('{"a": 1}', encoding="utf-8")
    (data / "b.json").write_text('{"b": 2}', encoding="utf-8")

    logs = tmp_path / "logs"
    logs.mkdir()
    (logs / "parse.md").write_text("* parsed\n", encoding="utf-8")
    (logs / "upload-blobs.md").write_text("* previous run\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def cfg(env, workdir):
    config = Config()
    config.data_dir = str(workdir / "data")
    config.logs_dir = str(workdir / "logs")
    return config


@pytest.fixture(autouse=True)
def reset_package_logger():
    """The CLI installs handlers on the package logger; drop them after each test."""
    yield
    logging.getLogger(LOGGER_NAME).handlers.clear()
