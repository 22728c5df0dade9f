import asyncio
import json
from pathlib import Path
from typing import Any

import pytest

from endcat.core.enums import PoolType
from endcat.services.metadata import MetadataService, normalize_base_dir
from tests.factories import make_pull


def _write(base: Path, rel_path: str, data: Any) -> None:
    path = base / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


@pytest.fixture
def metadata_dir(tmp_path: Path) -> Path:
    _write(tmp_path, "locale/zh-CN/character.json", [{"itemid": "chr_1", "name": "陈千语"}])
    _write(tmp_path, "locale/zh-CN/weapon.json", [{"itemid": "wpn_1", "name": "宏愿"}])
    _write(tmp_path, "locale/en-US/charater.json", [{"itemid": "chr_1", "name": "Chen Qianyu"}])
    _write(
        tmp_path,
        "locale/zh-CN/gacha_pool.json",
        [{"poolId": "P1", "up": ["chr_1"], "start_time": 1000, "end_time": 2000}],
    )
    _write(tmp_path, "manifest.json", {"entries": [{"path": "locale/zh-CN/gacha_pool.json"}]})
    return tmp_path


async def test_localized_names_with_fallback(metadata_dir: Path) -> None:
    service = MetadataService(str(metadata_dir), "en_us")
    names = await service.get_locale_names()

    # The legacy file name is still read, weapons fall back to zh-CN
    assert names.character == {"chr_1": "Chen Qianyu"}
    assert names.weapon == {"wpn_1": "宏愿"}

    weapon = make_pull(item_id="wpn_1", pool_type=PoolType.WEAPON, name="raw")
    unknown = make_pull(item_id="chr_9", name="raw name")
    no_id = make_pull(name="only name")
    assert service.localized_name(names, weapon) == "宏愿"
    assert service.localized_name(names, unknown) == "raw name"
    assert service.localized_name(names, no_id) == "only name"


async def test_names_are_cached_until_language_changes(metadata_dir: Path) -> None:
    service = MetadataService(str(metadata_dir), "zh-CN")
    first = await service.get_locale_names()
    assert await service.get_locale_names() is first

    assert not service.set_language("zh_cn")
    assert service.set_language("en-US")
    names = await service.get_locale_names()
    assert names is not first
    assert names.character["chr_1"] == "Chen Qianyu"


async def test_gacha_pools_need_manifest_entry(metadata_dir: Path) -> None:
    service = MetadataService(str(metadata_dir), "en-US")
    pools = await service.get_gacha_pools()
    assert [(p.pool_id, p.up) for p in pools] == [("P1", ["chr_1"])]

    # Present on disk but missing from the manifest
    _write(metadata_dir, "locale/ja-JP/gacha_pool.json", [{"poolId": "P2", "up": ["x"]}])
    service.set_language("ja-JP")
    assert [p.pool_id for p in await service.get_gacha_pools()] == ["P1"]


async def test_metadata_dir_change_clears_manifest(metadata_dir: Path, tmp_path_factory) -> None:
    service = MetadataService(str(metadata_dir), "zh-CN")
    assert await service.get_gacha_pools()

    empty = tmp_path_factory.mktemp("empty")
    service.set_metadata_dir(str(empty))
    assert await service.get_gacha_pools() == []


async def test_without_metadata_dir() -> None:
    service = MetadataService(None, "zh-CN")
    assert not service.is_available
    assert await service.get_gacha_pools() == []
    assert (await service.get_locale_names()).character == {}
    assert service.icon_path(make_pull(item_id="chr_1")) is None


def test_icon_path(metadata_dir: Path) -> None:
    service = MetadataService(str(metadata_dir), "zh-CN")
    base = normalize_base_dir(str(metadata_dir))

    assert service.icon_path(make_pull(item_id="chr_1")) == f"{base}/images/character/icon/chr_1.png"
    weapon = make_pull(item_id="wpn_1", pool_type=PoolType.WEAPON)
    assert service.icon_path(weapon) == f"{base}/images/weapon/icon/wpn_1.png"
    assert service.icon_path(make_pull(item_id="")) is None


def test_normalize_base_dir() -> None:
    assert normalize_base_dir("\\\\?\\C:\\Games\\meta\\") == "C:/Games/meta"


async def test_language_switch_does_not_abort_pending_lookup(
    metadata_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    service = MetadataService(str(metadata_dir), "zh-CN")
    gate = asyncio.Event()
    load_manifest = MetadataService._load_manifest_entries

    async def gated_load(self: MetadataService, base_dir: str) -> frozenset[str]:
        await gate.wait()
        return await load_manifest(self, base_dir)

    monkeypatch.setattr(MetadataService, "_load_manifest_entries", gated_load)

    reader = asyncio.create_task(service.get_gacha_pools())
    await asyncio.sleep(0)
    assert service.set_language("en-US")
    gate.set()

    assert [p.pool_id for p in await reader] == ["P1"]
