import sqlmodel

from ._base import BaseModel


class GachaPull(BaseModel, table=True):
    """One stored pull, written verbatim from the record API."""

    __tablename__: str = "gacha_pulls"
    __table_args__ = (
        sqlmodel.Index("ix_gacha_pulls_uid_pulled_at", "uid", "pulled_at"),
        sqlmodel.Index("ix_gacha_pulls_uid_seq_pool_type", "uid", "seq_id", "pool_type"),
    )

    id: int = sqlmodel.Field(primary_key=True, index=True, default=None)
    uid: str = sqlmodel.Field(foreign_key="accounts.uid", index=True)
    banner_id: str
    """Pool ID"""
    banner_name: str
    item_name: str
    item_id: str | None = sqlmodel.Field(default=None, nullable=True)
    rarity: int = sqlmodel.Field(ge=0)
    pulled_at: int = sqlmodel.Field(default=0, sa_type=sqlmodel.BigInteger)
    """Pull time as returned by the API (seconds or milliseconds)"""
    seq_id: str | None = sqlmodel.Field(default=None, nullable=True, index=True)
    """Unique only within one pool type"""
    pool_type: str | None = sqlmodel.Field(default=None, nullable=True)
    """Missing on rows written before pool types were recorded"""
    is_free: bool = False
    is_new: bool = False
