from pathlib import Path

import pytest

from endcat.core.enums import Provider
from endcat.core.exceptions import GameLogError
from endcat.utils.game_log import (
    extract_record_url,
    find_record_link,
    parse_record_url,
)

OLD_URL = "https://ef-webview.hypergryph.com/page/gacha_char?u8_token=old&server_id=1"
NEW_URL = "https://ef-webview.hypergryph.com/page/gacha_weapon?u8_token=new&server_id=1"


def test_extract_takes_the_last_url() -> None:
    text = f'load url "{OLD_URL}"\nsomething else\nload url ({NEW_URL})\n'
    assert extract_record_url(text) == NEW_URL


def test_extract_ignores_other_pages() -> None:
    assert extract_record_url("https://ef-webview.hypergryph.com/page/news?x=1") is None


def test_parse_record_url() -> None:
    link = parse_record_url(
        "https://ef-webview.gryphline.com/page/gacha_char?u8_token=t%2B1&server_id=3"
    )
    assert link.u8_token == "t+1"
    assert link.server_id == "3"
    assert link.provider is Provider.GRYPHLINE


def test_parse_defaults_server() -> None:
    link = parse_record_url("https://ef-webview.hypergryph.com/page/gacha_char?u8_token=t")
    assert link.server_id == "1"


@pytest.mark.parametrize(
    "url",
    [
        "https://ef-webview.hypergryph.com/page/gacha_char?server_id=1",
        "https://ef-webview.example.com/page/gacha_char?u8_token=t",
    ],
)
def test_parse_rejects_bad_urls(url: str) -> None:
    with pytest.raises(GameLogError):
        parse_record_url(url)


async def test_find_record_link_reads_only_the_tail(tmp_path: Path) -> None:
    log = tmp_path / "HGWebview.log"
    log.write_text(f"{NEW_URL}\n" + "x" * 4096 + "\n", encoding="utf-8")

    with pytest.raises(GameLogError):
        await find_record_link(str(log), max_bytes=1024)

    link = await find_record_link(str(log), max_bytes=1 << 20)
    assert link.u8_token == "new"


async def test_find_record_link_missing_file(tmp_path: Path) -> None:
    with pytest.raises(GameLogError):
        await find_record_link(str(tmp_path / "missing.log"), max_bytes=1024)


async def test_default_log_path_needs_userprofile(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("USERPROFILE", raising=False)
    with pytest.raises(GameLogError):
        await find_record_link(None, max_bytes=1024)
