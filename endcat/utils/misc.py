import datetime

# Game server time, used when showing pull dates
SERVER_TZ = datetime.timezone(datetime.timedelta(hours=8))


def get_utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


def get_utc_iso_now() -> str:
    return get_utc_now().isoformat()


def format_server_date(timestamp_ms: int) -> str:
    """Format a millisecond timestamp as ``YYYY.MM.DD`` in server time."""
    return datetime.datetime.fromtimestamp(timestamp_ms / 1000, SERVER_TZ).strftime("%Y.%m.%d")


def normalize_lang_tag(lang: str | None, default: str = "zh-CN") -> str:
    """Normalize a language tag such as ``en_us`` into ``en-US``."""
    raw = (lang or "").strip()
    if not raw:
        return default
    parts = raw.replace("_", "-").split("-")
    if len(parts) == 1:
        return parts[0]
    return f"{parts[0].lower()}-{parts[1].upper()}"
