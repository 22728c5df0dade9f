from collections.abc import Sequence
from typing import Annotated

from fastapi import Depends
from loguru import logger
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, desc, select
from sqlmodel.ext.asyncio.session import AsyncSession

from endcat.core.db import get_db
from endcat.core.enums import PoolType
from endcat.core.exceptions import StorageError
from endcat.models.gacha_pull import GachaPull
from endcat.schemas.gacha import PullRecord
from endcat.services.stats import seq_sort_key

# Stay well below SQLite's bound parameter limit
SEQ_ID_CHUNK_SIZE = 500


def to_pull_record(row: GachaPull) -> PullRecord:
    return PullRecord(
        name=row.item_name,
        item_id=row.item_id or "",
        rarity=row.rarity,
        pool_id=row.banner_id,
        pool_name=row.banner_name,
        seq_id=row.seq_id or "",
        pulled_at=row.pulled_at,
        pool_type=row.pool_type or "",
        is_free=row.is_free,
        is_new=row.is_new,
    )


def cursor_key(pool_type: str, pool_id: str) -> str:
    """Key under which a pool's sync cursor is kept.

    Character pools are queried by pool type, weapon pools by pool ID.
    """
    return pool_id if pool_type == PoolType.WEAPON else pool_type


class GachaPullService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def list_pulls(self, uid: str, limit: int) -> list[PullRecord]:
        """List stored pulls of an account. Callers must not rely on the order."""
        result = await self.db.exec(
            select(GachaPull)
            .where(GachaPull.uid == uid)
            .order_by(desc(col(GachaPull.pulled_at)))
            .limit(limit)
        )
        return [to_pull_record(row) for row in result.all()]

    async def latest_seq_ids(self, uid: str) -> dict[str, str]:
        """Get the newest stored sequence ID of every pool of an account."""
        result = await self.db.exec(
            select(GachaPull.pool_type, GachaPull.banner_id, GachaPull.seq_id).where(
                GachaPull.uid == uid, col(GachaPull.seq_id).is_not(None)
            )
        )

        cursors: dict[str, str] = {}
        for pool_type, banner_id, seq_id in result.all():
            if not pool_type or not seq_id:
                continue
            key = cursor_key(pool_type, banner_id)
            current = cursors.get(key)
            if current is None or seq_sort_key(seq_id) > seq_sort_key(current):
                cursors[key] = seq_id
        return cursors

    async def _get_existing(
        self, uid: str, seq_ids: Sequence[str]
    ) -> dict[tuple[str, str | None], GachaPull]:
        existing: dict[tuple[str, str | None], GachaPull] = {}
        for start in range(0, len(seq_ids), SEQ_ID_CHUNK_SIZE):
            chunk = seq_ids[start : start + SEQ_ID_CHUNK_SIZE]
            result = await self.db.exec(
                select(GachaPull).where(GachaPull.uid == uid, col(GachaPull.seq_id).in_(chunk))
            )
            for row in result.all():
                existing[row.seq_id or "", row.pool_type] = row
        return existing

    async def save_pulls(self, uid: str, records: Sequence[PullRecord]) -> int:
        """Insert new pulls and overwrite stored ones in a single transaction.

        A pull is identified by its sequence ID together with its pool type.

        Raises:
            StorageError: If the transaction fails. Nothing is saved in that case.
        """
        if not records:
            return 0

        try:
            existing = await self._get_existing(uid, sorted({r.seq_id for r in records}))
            for record in records:
                row = existing.get((record.seq_id, record.pool_type))
                if row is None:
                    row = GachaPull(
                        uid=uid,
                        banner_id=record.pool_id,
                        banner_name=record.pool_name,
                        item_name=record.name,
                        item_id=record.item_id,
                        rarity=record.rarity,
                        pulled_at=record.pulled_at,
                        seq_id=record.seq_id,
                        pool_type=record.pool_type,
                        is_free=record.is_free,
                        is_new=record.is_new,
                    )
                    existing[record.seq_id, record.pool_type] = row
                else:
                    row.sqlmodel_update(
                        {
                            "banner_id": record.pool_id,
                            "banner_name": record.pool_name,
                            "item_name": record.name,
                            "item_id": record.item_id,
                            "rarity": record.rarity,
                            "pulled_at": record.pulled_at,
                            "is_free": record.is_free,
                            "is_new": record.is_new,
                        }
                    )
                self.db.add(row)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.exception(f"Saving {len(records)} pulls for {uid} failed")
            raise StorageError(f"保存抽卡记录失败: {e}") from e

        logger.info(f"Saved {len(records)} pulls for {uid}")
        return len(records)

    async def delete_invalid_pulls(self, uid: str) -> int:
        """Delete pulls without a timestamp, left behind by early versions."""
        result = await self.db.execute(
            delete(GachaPull).where(col(GachaPull.uid) == uid, col(GachaPull.pulled_at) == 0)
        )
        await self.db.commit()
        return result.rowcount