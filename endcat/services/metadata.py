"""Item names, icons and pool rate-up windows from the local metadata package.

Layout of the package directory::

    manifest.json                       {"entries": [{"path": "locale/zh-CN/weapon.json"}, ...]}
    locale/<lang>/character.json        [{"itemid": ..., "name": ...}]
    locale/<lang>/weapon.json
    locale/<lang>/gacha_pool.json       [{"poolId": ..., "up": [...], "start_time": ...}]
    images/<category>/icon/<itemid>.png
"""

import json
from dataclasses import dataclass, field
from typing import Any

import anyio
from loguru import logger
from pydantic import TypeAdapter, ValidationError

from endcat.core.enums import ItemCategory
from endcat.schemas.gacha import PoolMetadataEntry, PullRecord
from endcat.services.classifier import is_weapon
from endcat.utils.cache import AsyncLookupCache
from endcat.utils.misc import normalize_lang_tag

FALLBACK_LANGUAGE = "zh-CN"
# Older packages shipped the misspelled file name
CHARACTER_FILE_NAMES = ("character.json", "charater.json")
WEAPON_FILE_NAMES = ("weapon.json",)
POOL_FILE_NAME = "gacha_pool.json"

_pool_entries = TypeAdapter(list[PoolMetadataEntry])


@dataclass
class LocaleNameMaps:
    character: dict[str, str] = field(default_factory=dict)
    weapon: dict[str, str] = field(default_factory=dict)

    def get(self, category: ItemCategory, item_id: str) -> str | None:
        names = self.weapon if category is ItemCategory.WEAPON else self.character
        return names.get(item_id)


def normalize_base_dir(path: str) -> str:
    """Strip the Windows extended-length prefix and use forward slashes."""
    return path.removeprefix("\\\\?\\").replace("\\", "/").rstrip("/")


def item_category(record: PullRecord) -> ItemCategory:
    return ItemCategory.WEAPON if is_weapon(record) else ItemCategory.CHARACTER


async def _read_json(path: anyio.Path) -> Any | None:
    try:
        return json.loads(await path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to read {path}: {e}")
        return None


class MetadataService:
    def __init__(self, metadata_dir: str | None, language: str) -> None:
        self.base_dir = normalize_base_dir(metadata_dir) if metadata_dir else None
        self.language = normalize_lang_tag(language, FALLBACK_LANGUAGE)

        self._names = AsyncLookupCache[tuple[str, str], LocaleNameMaps]("locale names")
        self._pools = AsyncLookupCache[tuple[str, str], list[PoolMetadataEntry]]("gacha pools")
        self._manifests = AsyncLookupCache[str, frozenset[str]]("manifest")

    @property
    def is_available(self) -> bool:
        return bool(self.base_dir)

    def set_language(self, language: str) -> bool:
        """Switch the lookup language. Returns whether it changed."""
        normalized = normalize_lang_tag(language, FALLBACK_LANGUAGE)
        if normalized == self.language:
            return False
        self.language = normalized
        self._names.clear()
        self._pools.clear()
        return True

    def set_metadata_dir(self, metadata_dir: str | None) -> None:
        self.base_dir = normalize_base_dir(metadata_dir) if metadata_dir else None
        self._names.clear()
        self._pools.clear()
        self._manifests.clear()

    def _candidate_languages(self) -> list[str]:
        if self.language == FALLBACK_LANGUAGE:
            return [self.language]
        return [self.language, FALLBACK_LANGUAGE]

    async def get_manifest_entries(self, base_dir: str) -> frozenset[str]:
        return await self._manifests.get_or_fetch(
            base_dir, lambda: self._load_manifest_entries(base_dir)
        )

    async def _load_manifest_entries(self, base_dir: str) -> frozenset[str]:
        data = await _read_json(anyio.Path(base_dir) / "manifest.json")
        entries = data.get("entries") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            return frozenset()
        return frozenset(
            entry["path"].replace("\\", "/")
            for entry in entries
            if isinstance(entry, dict) and isinstance(entry.get("path"), str)
        )

    async def _load_name_list(self, base_dir: str, lang: str, file_names: tuple[str, ...]) -> list[Any] | None:
        for file_name in file_names:
            data = await _read_json(anyio.Path(base_dir) / "locale" / lang / file_name)
            if isinstance(data, list):
                return data
        return None

    async def _load_names(self, base_dir: str, file_names: tuple[str, ...]) -> dict[str, str]:
        for lang in self._candidate_languages():
            items = await self._load_name_list(base_dir, lang, file_names)
            if items is not None:
                return {
                    item["itemid"]: item["name"]
                    for item in items
                    if isinstance(item, dict) and item.get("itemid") and item.get("name")
                }
        return {}

    async def get_locale_names(self) -> LocaleNameMaps:
        base_dir = self.base_dir
        if not base_dir:
            return LocaleNameMaps()

        async def load() -> LocaleNameMaps:
            return LocaleNameMaps(
                character=await self._load_names(base_dir, CHARACTER_FILE_NAMES),
                weapon=await self._load_names(base_dir, WEAPON_FILE_NAMES),
            )

        return await self._names.get_or_fetch((base_dir, self.language), load)

    async def get_gacha_pools(self) -> list[PoolMetadataEntry]:
        """Get the rate-up windows of all pools, or an empty list if unavailable."""
        base_dir = self.base_dir
        if not base_dir:
            return []

        async def load() -> list[PoolMetadataEntry]:
            manifest = await self.get_manifest_entries(base_dir)
            for lang in self._candidate_languages():
                rel_path = f"locale/{lang}/{POOL_FILE_NAME}"
                # Files missing from the manifest are never requested
                if rel_path not in manifest:
                    continue
                data = await _read_json(anyio.Path(base_dir) / rel_path)
                if not isinstance(data, list):
                    continue
                try:
                    return _pool_entries.validate_python(data)
                except ValidationError as e:
                    logger.warning(f"Invalid pool metadata in {rel_path}: {e}")
            return []

        return await self._pools.get_or_fetch((base_dir, self.language), load)

    def icon_path(self, record: PullRecord) -> str | None:
        """Build the icon path of a record's item. The file may not exist."""
        if not self.base_dir or not record.item_id:
            return None
        return f"{self.base_dir}/images/{item_category(record)}/icon/{record.item_id}.png"

    def localized_name(self, names: LocaleNameMaps, record: PullRecord) -> str:
        if not record.item_id:
            return record.name
        return names.get(item_category(record), record.item_id) or record.name or record.item_id
