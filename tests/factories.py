from endcat.core.enums import PoolType, Provider
from endcat.core.exceptions import RemoteAPIError
from endcat.schemas.gacha import PullRecord, RoleInfo, WeaponPool
from endcat.services.stats import seq_sort_key


def make_pull(
    rarity: int = 4,
    seq_id: str = "1",
    *,
    name: str = "",
    item_id: str = "",
    pool_type: str = PoolType.SPECIAL,
    pool_id: str = "special_1",
    pool_name: str = "特许寻访",
    pulled_at: int = 1_700_000_000,
) -> PullRecord:
    return PullRecord(
        name=name or f"item-{seq_id}",
        item_id=item_id,
        rarity=rarity,
        pool_id=pool_id,
        pool_name=pool_name,
        seq_id=seq_id,
        pulled_at=pulled_at,
        pool_type=str(pool_type),
    )


def newest_first(*rarities: int, pool_type: str = PoolType.SPECIAL) -> list[PullRecord]:
    """Build pulls newest to oldest with descending sequence IDs."""
    count = len(rarities)
    return [
        make_pull(rarity, str(count - i), pool_type=pool_type) for i, rarity in enumerate(rarities)
    ]


class FakeRecordSource:
    """In-memory record API holding newest-first records per pool key."""

    def __init__(
        self,
        records: dict[str, list[PullRecord]] | None = None,
        weapon_pools: list[WeaponPool] | None = None,
        role: RoleInfo | None = None,
    ) -> None:
        self.records = records or {}
        self.weapon_pools = weapon_pools or []
        self.role = role or RoleInfo(uid="10001", role_id="r-1", nick_name="管理员", channel_id=1)
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str | None]] = []

    async def fetch_pool_records(
        self,
        token: str,
        server_id: str,
        pool: PoolType | str,
        since_seq_id: str | None = None,
        *,
        provider: Provider = Provider.HYPERGRYPH,
    ) -> list[PullRecord]:
        key = str(pool)
        self.calls.append((key, since_seq_id))
        if key in self.failing:
            raise RemoteAPIError(f"{key} unavailable")
        records = self.records.get(key, [])
        if since_seq_id is None:
            return list(records)
        cursor = seq_sort_key(since_seq_id)
        return [r for r in records if seq_sort_key(r.seq_id) > cursor]

    async def fetch_weapon_pools(
        self, token: str, server_id: str, *, provider: Provider = Provider.HYPERGRYPH
    ) -> list[WeaponPool]:
        return list(self.weapon_pools)

    async def query_role(self, token: str, server_id: str) -> RoleInfo:
        return self.role
