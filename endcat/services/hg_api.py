"""Client for the web-view record API of the game."""

import asyncio
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from endcat.core.config import settings
from endcat.core.enums import CHARACTER_POOL_TYPES, PoolType, Provider
from endcat.core.exceptions import RemoteAPIError
from endcat.schemas.gacha import PullRecord, RoleInfo, WeaponPool
from endcat.services.stats import seq_sort_key

GLOBAL_CHANNEL_ID = 6
ROLE_LIST_URL = "https://u8.hypergryph.com/game/role/v1/query_role_list"


def provider_from_channel_id(channel_id: int | None) -> Provider:
    return Provider.GRYPHLINE if channel_id == GLOBAL_CHANNEL_ID else Provider.HYPERGRYPH


def webview_host(provider: Provider) -> str:
    return f"https://ef-webview.{provider}.com"


class _RawRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    seq_id: str = Field(default="", alias="seqId")
    char_id: str | None = Field(default=None, alias="charId")
    char_name: str | None = Field(default=None, alias="charName")
    weapon_id: str | None = Field(default=None, alias="weaponId")
    weapon_name: str | None = Field(default=None, alias="weaponName")
    rarity: int | None = 0
    pool_id: str | None = Field(default=None, alias="poolId")
    pool_name: str = Field(default="", alias="poolName")
    gacha_ts: int | None = Field(default=0, alias="gachaTs")
    is_free: bool = Field(default=False, alias="isFree")
    is_new: bool = Field(default=False, alias="isNew")

    def to_record(self, pool_type: str, default_pool_id: str = "") -> PullRecord:
        item_id = self.char_id or self.weapon_id or ""
        return PullRecord(
            name=self.char_name or self.weapon_name or item_id,
            item_id=item_id,
            rarity=self.rarity or 0,
            pool_id=self.pool_id or default_pool_id,
            pool_name=self.pool_name,
            seq_id=self.seq_id,
            pulled_at=self.gacha_ts or 0,
            pool_type=pool_type,
            is_free=self.is_free,
            is_new=self.is_new,
        )


class _RecordPage(BaseModel):
    records: list[_RawRecord] = Field(default_factory=list, alias="list")
    has_more: bool | None = Field(default=None, alias="hasMore")


def _response_code(payload: dict[str, Any]) -> int:
    raw = payload.get("code", payload.get("status", -1))
    try:
        return int(str(raw).strip())
    except ValueError:
        return -1


class HypergryphClient:
    """Fetch pull records, weapon pools and role profiles.

    Record endpoints return pulls newest first, one page at a time; the next page is
    requested with the sequence ID of the last record received.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        page_delay: float = settings.page_delay,
        max_records: int = settings.max_records_per_pool,
        lang: str = "zh-cn",
    ) -> None:
        self.client = client
        self.page_delay = page_delay
        self.max_records = max_records
        self.lang = lang

    async def _get_json(self, url: str, params: dict[str, str], error_message: str) -> Any:
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        payload: dict[str, Any] = response.json()
        if _response_code(payload) != 0:
            raise RemoteAPIError(payload.get("msg") or error_message)
        return payload.get("data")

    async def fetch_pool_records(
        self,
        token: str,
        server_id: str,
        pool: PoolType | str,
        since_seq_id: str | None = None,
        *,
        provider: Provider = Provider.HYPERGRYPH,
    ) -> list[PullRecord]:
        """Fetch the pulls of one pool that are newer than ``since_seq_id``.

        Args:
            token: Game token of the account.
            server_id: Server the role lives on.
            pool: A character pool type, or the ID of a weapon pool.
            since_seq_id: Sequence ID of the newest stored pull. Fetches the whole
                history when omitted.
            provider: API host family of the account.

        Raises:
            RemoteAPIError: If the API rejects the request.
            httpx.HTTPError: On transport failures.
        """
        is_character_pool = pool in CHARACTER_POOL_TYPES
        params = {"token": token, "server_id": server_id, "lang": self.lang}
        if is_character_pool:
            url = f"{webview_host(provider)}/api/record/char"
            params["pool_type"] = str(pool)
            pool_type, default_pool_id = str(pool), ""
        else:
            url = f"{webview_host(provider)}/api/record/weapon"
            params["pool_id"] = str(pool)
            pool_type, default_pool_id = PoolType.WEAPON.value, str(pool)

        cursor = seq_sort_key(since_seq_id) if since_seq_id else None
        records: list[PullRecord] = []
        next_seq_id: str | None = None

        while True:
            page_params = dict(params)
            if next_seq_id:
                page_params["seq_id"] = next_seq_id

            data = await self._get_json(url, page_params, "获取寻访记录失败")
            page = _RecordPage.model_validate(data or {})
            if not page.records:
                break

            for raw in page.records:
                if cursor is not None and seq_sort_key(raw.seq_id) <= cursor:
                    logger.debug(f"Reached stored seq_id {since_seq_id} in {pool}")
                    return records
                records.append(raw.to_record(pool_type, default_pool_id))

            next_seq_id = records[-1].seq_id
            if len(records) > self.max_records:
                logger.warning(f"Stopped fetching {pool} after {len(records)} records")
                break
            if page.has_more is False:
                break

            await asyncio.sleep(self.page_delay)

        logger.debug(f"Fetched {len(records)} records from {pool}")
        return records

    async def fetch_weapon_pools(
        self, token: str, server_id: str, *, provider: Provider = Provider.HYPERGRYPH
    ) -> list[WeaponPool]:
        data = await self._get_json(
            f"{webview_host(provider)}/api/record/weapon/pool",
            {"token": token, "server_id": server_id, "lang": self.lang},
            "获取武器池失败",
        )
        pools = [
            WeaponPool(pool_id=item.get("poolId") or "", pool_name=item.get("poolName") or "")
            for item in data or []
        ]
        return [pool for pool in pools if pool.pool_id]

    async def query_role(self, token: str, server_id: str) -> RoleInfo:
        """Get the account UID and the profile of its first role."""
        response = await self.client.post(
            ROLE_LIST_URL, json={"token": token, "serverId": server_id}
        )
        response.raise_for_status()
        payload: dict[str, Any] = response.json()
        if _response_code(payload) != 0:
            raise RemoteAPIError(payload.get("msg") or "query_role_list 失败")

        data = payload.get("data") or {}
        uid = data.get("uid")
        if not uid:
            raise RemoteAPIError("query_role_list 响应缺少 data.uid")

        roles = data.get("roles") or []
        first_role = roles[0] if roles else {}
        channel_id = data.get("channelId")
        return RoleInfo(
            uid=str(uid),
            role_id=first_role.get("roleId"),
            nick_name=first_role.get("nickName") or first_role.get("nick_name"),
            channel_id=int(channel_id) if channel_id not in (None, "") else None,
        )
