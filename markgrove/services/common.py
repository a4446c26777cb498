from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse, urlunparse


_WEBKIT_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)


def resolve_address(url: str) -> str:
    """Resolve an href the way a browser reports it: lower-cased scheme and
    host, and "/" for an empty path on hierarchical URLs."""
    if not url:
        return ""
    raw = url.strip()
    parsed = urlparse(raw)
    if not parsed.scheme or not parsed.netloc:
        return raw
    path = parsed.path or "/"
    return urlunparse(
        (
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            path,
            parsed.params,
            parsed.query,
            parsed.fragment,
        )
    )


def parse_tags(raw: str) -> set[str]:
    if not raw:
        return set()
    tokens = [t.strip().lower() for t in raw.replace(";", ",").split(",")]
    return {t for t in tokens if t}


def epoch_to_iso(value) -> str:
    try:
        seconds = int(str(value).strip())
    except (TypeError, ValueError):
        return ""
    if seconds <= 0:
        return ""
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return ""


def webkit_to_iso(value) -> str:
    """Chromium stores times as microseconds since 1601-01-01 UTC."""
    try:
        micros = int(str(value).strip())
    except (TypeError, ValueError):
        return ""
    if micros <= 0:
        return ""
    try:
        return (_WEBKIT_EPOCH + timedelta(microseconds=micros)).isoformat()
    except OverflowError:
        return ""
