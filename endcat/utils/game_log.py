import os
import re
from pathlib import PurePosixPath
from urllib.parse import parse_qs, urlsplit

import anyio
from pydantic import BaseModel

from endcat.core.enums import Provider
from endcat.core.exceptions import GameLogError

DEFAULT_LOG_SUFFIX = PurePosixPath("AppData/LocalLow/Hypergryph/Endfield/sdklogs/HGWebview.log")

_URL_PATTERN = re.compile(r"https://ef-webview\.\S+")
_TRAILING_PUNCTUATION = "\"')]}"


class RecordPageLink(BaseModel):
    """Token and server carried by the record page URL opened in game."""

    url: str
    u8_token: str
    server_id: str = "1"
    provider: Provider = Provider.HYPERGRYPH


def default_log_path() -> anyio.Path:
    home = os.environ.get("USERPROFILE")
    if not home:
        raise GameLogError("无法获取 USERPROFILE，请手动指定日志路径")
    return anyio.Path(home) / str(DEFAULT_LOG_SUFFIX)


async def read_tail(path: anyio.Path, max_bytes: int) -> str:
    try:
        async with await anyio.open_file(path, "rb") as f:
            size = (await path.stat()).st_size
            await f.seek(max(size - max_bytes, 0))
            data = await f.read()
    except OSError as e:
        raise GameLogError(f"无法打开日志: {e}") from e
    return data.decode("utf-8", errors="replace")


def extract_record_url(text: str) -> str | None:
    """Find the most recent record page URL in the log text."""
    for line in reversed(text.splitlines()):
        if "/page/gacha_" not in line:
            continue
        match = _URL_PATTERN.search(line)
        if match:
            return match.group(0).rstrip(_TRAILING_PUNCTUATION)
    return None


def parse_record_url(url: str) -> RecordPageLink:
    parts = urlsplit(url)
    query = parse_qs(parts.query)

    tokens = query.get("u8_token")
    if not tokens or not tokens[0]:
        raise GameLogError("缺少 u8_token")

    host = parts.hostname or ""
    provider_name = host.removeprefix("ef-webview.").removesuffix(".com")
    try:
        provider = Provider(provider_name)
    except ValueError:
        raise GameLogError(f"无法识别的服务器: {host}") from None

    return RecordPageLink(
        url=url,
        u8_token=tokens[0],
        server_id=query.get("server_id", ["1"])[0] or "1",
        provider=provider,
    )


async def find_record_link(log_path: str | None, max_bytes: int) -> RecordPageLink:
    """Read the game web-view log and return the last record page it opened.

    Raises:
        GameLogError: If the log is unreadable or holds no record page URL.
    """
    path = anyio.Path(log_path) if log_path and log_path.strip() else default_log_path()
    text = await read_tail(path, max_bytes)
    url = extract_record_url(text)
    if not url:
        raise GameLogError("未在日志中找到抽卡链接")
    return parse_record_url(url)
