import urllib.error
import urllib.request
from typing import Tuple

from . import config
from .utils import dbg

USER_AGENT = "localcli/0.1"


def fetch_url(url: str, timeout_s: int = config.FETCH_TIMEOUT) -> Tuple[int, str, int]:
    """GET url. Returns (status, body truncated to FETCH_MAX_CHARS, full body length).

    HTTP error statuses are returned, not raised; connection failures raise URLError.
    """
    if not url.lower().startswith(("http://", "https://")):
        raise ValueError(f"Unsupported URL scheme: {url}")
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            status = int(getattr(resp, "status", 200))
            raw = resp.read()
            charset = resp.headers.get_content_charset() or "utf-8"
    except urllib.error.HTTPError as exc:
        status = int(exc.code)
        raw = exc.read() or b""
        charset = "utf-8"
    text = raw.decode(charset, errors="replace")
    dbg(f"fetch_url: {url} status={status} len={len(text)}")
    return status, text[: config.FETCH_MAX_CHARS], len(text)
