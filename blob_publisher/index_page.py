"""The index.html page linking to the latest published blobs."""

INDEX_BLOB_NAME = "index.html"


def _link(url: str) -> str:
    short = url[url.rfind("/") + 1:]
    return f"<li><a href='{url}'>{short}</a></li>"


def create_index(time_stamp: str, data_urls: list[str], log_urls: list[str]) -> str:
    lines = ["<html><head></head><body>"]
    lines.append(f"<h3>Here is the latest data as of **{time_stamp}**:</h3>")
    lines.append("<h4>Data</h4>")
    lines.extend(_link(u) for u in data_urls)
    lines.append("<h4>Logs</h4>")
    lines.extend(_link(u) for u in log_urls)
    lines.append("</body></html>")
    return "\n".join(lines)


def upload_index(container, time_stamp: str, data_urls: list[str], log_urls: list[str]) -> str:
    """Overwrite the container's index page. Returns its URL."""
    container.create_blob_from_text(INDEX_BLOB_NAME, create_index(time_stamp, data_urls, log_urls))
    return container.url_of(INDEX_BLOB_NAME)
