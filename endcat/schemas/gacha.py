from pydantic import BaseModel, ConfigDict, Field, computed_field

from endcat.core.enums import OutcomeStatus


class PullRecord(BaseModel):
    """A single pull as returned by the record API. Never mutated once created."""

    model_config = ConfigDict(frozen=True)

    name: str
    item_id: str = ""
    rarity: int
    pool_id: str = ""
    pool_name: str = ""
    seq_id: str = ""
    pulled_at: int = 0
    """Epoch timestamp, seconds or milliseconds"""
    pool_type: str = ""
    is_free: bool = False
    is_new: bool = False


class WeaponPool(BaseModel):
    pool_id: str
    pool_name: str = ""


class RoleInfo(BaseModel):
    """Profile of the first game role bound to an account."""

    uid: str
    role_id: str | None = None
    nick_name: str | None = None
    channel_id: int | None = None


class PoolMetadataEntry(BaseModel):
    """Rate-up window of a pool, read from ``gacha_pool.json``."""

    model_config = ConfigDict(populate_by_name=True)

    pool_id: str = Field(default="", alias="poolId")
    pool_name: str | None = Field(default=None, alias="poolName")
    gacha_type: str | None = None
    start_time: float | None = None
    end_time: float | None = None
    """Absent or <= 0 means the window is open-ended"""
    up: list[str] = Field(default_factory=list)


class BannerStats(BaseModel):
    s6: int = 0
    s5: int = 0
    s4: int = 0
    guarantee: int = 0
    """Pulls since the most recent 6-star"""
    avg6: int = 0
    min6: int = 0
    max6: int = 0


class TopHistoryItem(BaseModel):
    name: str
    count: int
    """Pulls it took to get this item"""
    rarity: int = 6
    icon: str | None = None
    featured: bool = False


class BannerSummary(BaseModel):
    id: str
    title: str
    date_range: str
    stats: BannerStats
    total: int
    top: list[TopHistoryItem]

    @computed_field
    @property
    def guarantee(self) -> int:
        return self.stats.guarantee

    @computed_field
    @property
    def avg6(self) -> int:
        return self.stats.avg6

    @computed_field
    @property
    def min6(self) -> int:
        return self.stats.min6

    @computed_field
    @property
    def max6(self) -> int:
        return self.stats.max6


class SyncResult(BaseModel):
    count: int = 0
    """Records fetched and saved"""
    account_updated: bool = False
    skipped: bool = False
    """Another sync with the same mode was already running"""
    uid: str | None = None


class ActionOutcome(BaseModel):
    """What a ledger action reports back to the presentation layer."""

    status: OutcomeStatus
    message: str
    result: SyncResult | None = None


class LanguageUpdate(BaseModel):
    language: str = Field(min_length=2)
