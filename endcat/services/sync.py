"""Keep stored pulls in step with the record API.

Incremental syncs read the newest stored sequence ID of every pool once, then fetch
all pools concurrently, asking each only for records past its cursor. Full syncs
purge invalid rows and fetch every pool from the beginning. New records are saved in
one batch.
"""

import asyncio
from collections.abc import Callable, Iterable
from typing import Protocol

import httpx
from loguru import logger
from sqlmodel.ext.asyncio.session import AsyncSession

from endcat.core.config import settings
from endcat.core.db import get_session
from endcat.core.enums import CHARACTER_POOL_TYPES, PoolType, Provider, SyncMode
from endcat.core.exceptions import EndcatError, GameLogError, PreconditionError
from endcat.schemas.account import AccountUpsert
from endcat.schemas.gacha import PullRecord, RoleInfo, SyncResult, WeaponPool
from endcat.services.account import AccountService
from endcat.services.gacha_pull import GachaPullService
from endcat.services.hg_api import provider_from_channel_id
from endcat.utils.game_log import find_record_link

type SessionFactory = Callable[[], AsyncSession]

# Failures of a single pool fetch that only cost that pool's records
FETCH_ERRORS = (EndcatError, httpx.HTTPError, ValueError)


class RecordSource(Protocol):
    async def fetch_pool_records(
        self,
        token: str,
        server_id: str,
        pool: PoolType | str,
        since_seq_id: str | None = None,
        *,
        provider: Provider = Provider.HYPERGRYPH,
    ) -> list[PullRecord]: ...

    async def fetch_weapon_pools(
        self, token: str, server_id: str, *, provider: Provider = Provider.HYPERGRYPH
    ) -> list[WeaponPool]: ...

    async def query_role(self, token: str, server_id: str) -> RoleInfo: ...


def _flatten(batches: Iterable[list[PullRecord]]) -> list[PullRecord]:
    return [record for batch in batches for record in batch]


class LedgerSynchronizer:
    def __init__(
        self,
        source: RecordSource,
        session_factory: SessionFactory = get_session,
        *,
        game_log_path: str | None = settings.game_log_path,
        log_tail_bytes: int = settings.log_tail_bytes,
    ) -> None:
        self.source = source
        self.session_factory = session_factory
        self.game_log_path = game_log_path
        self.log_tail_bytes = log_tail_bytes
        self._in_flight: set[tuple[str, SyncMode]] = set()

    def is_syncing(self, key: str, mode: SyncMode) -> bool:
        return (key, mode) in self._in_flight

    async def sync_account(self, uid: str, mode: SyncMode) -> SyncResult:
        """Sync a stored account with its saved game token.

        A second call for the same account and mode while one is running returns a
        skipped result without doing anything.

        Raises:
            PreconditionError: If the account is unknown or has no game token.
            StorageError: If saving the fetched records fails.
        """
        flight = (uid, mode)
        if flight in self._in_flight:
            logger.info(f"{mode} sync of {uid} already running, skipping")
            return SyncResult(skipped=True, uid=uid)

        self._in_flight.add(flight)
        try:
            async with self.session_factory() as session:
                account = await AccountService(session).get_account_tokens(uid)
            if not account:
                raise PreconditionError(f"账户不存在: {uid}")
            if not account.u8_token:
                raise PreconditionError("账户缺少游戏 Token，请先通过游戏日志同步")

            server_id = account.server_id or "1"
            provider = provider_from_channel_id(account.channel_id)
            logger.info(f"Starting {mode} sync of {uid} ({provider}, server {server_id})")

            account_updated = await self._refresh_profile(uid, account.u8_token, server_id)
            count = await self._sync_records(uid, account.u8_token, server_id, provider, mode)
        finally:
            self._in_flight.discard(flight)

        return SyncResult(count=count, account_updated=account_updated, uid=uid)

    async def sync_from_log(self, mode: SyncMode, log_path: str | None = None) -> SyncResult:
        """Sync the account whose record page was last opened in game.

        The game token and server come from the page URL found in the web-view log.
        The account is created or updated before its records are fetched.

        Raises:
            GameLogError: If no usable record page URL is found.
            RemoteAPIError: If the account behind the token cannot be resolved.
            StorageError: If saving the fetched records fails.
        """
        flight = ("<game-log>", mode)
        if flight in self._in_flight:
            logger.info(f"{mode} sync from game log already running, skipping")
            return SyncResult(skipped=True)

        self._in_flight.add(flight)
        try:
            link = await find_record_link(log_path or self.game_log_path, self.log_tail_bytes)
            if link.provider is not Provider.HYPERGRYPH:
                raise GameLogError(f"日志同步暂只支持国服，检测到 {link.provider}")

            role = await self.source.query_role(link.u8_token, link.server_id)
            async with self.session_factory() as session:
                service = AccountService(session)
                existing = await service.get_account(role.uid)
                account_updated = await service.update_profile(role.uid, role) or existing is None
                await service.upsert_account(
                    AccountUpsert(
                        uid=role.uid,
                        role_id=role.role_id,
                        nick_name=role.nick_name,
                        server_id=link.server_id,
                        channel_id=role.channel_id,
                        u8_token=link.u8_token,
                    )
                )

            logger.info(f"Starting {mode} sync of {role.uid} from game log")
            count = await self._sync_records(
                role.uid, link.u8_token, link.server_id, link.provider, mode
            )
        finally:
            self._in_flight.discard(flight)

        return SyncResult(count=count, account_updated=account_updated, uid=role.uid)

    async def _refresh_profile(self, uid: str, token: str, server_id: str) -> bool:
        try:
            role = await self.source.query_role(token, server_id)
        except FETCH_ERRORS as e:
            logger.warning(f"Could not refresh profile of {uid}: {e}")
            return False

        async with self.session_factory() as session:
            return await AccountService(session).update_profile(uid, role)

    async def _sync_records(
        self, uid: str, token: str, server_id: str, provider: Provider, mode: SyncMode
    ) -> int:
        async with self.session_factory() as session:
            service = GachaPullService(session)
            if mode == SyncMode.FULL:
                cursors: dict[str, str] = {}
                purged = await service.delete_invalid_pulls(uid)
                logger.info(f"Purged {purged} invalid pulls of {uid}")
            else:
                cursors = await service.latest_seq_ids(uid)

        batches = await asyncio.gather(
            *(
                self._fetch_pool(token, server_id, pool_type, cursors.get(pool_type), provider)
                for pool_type in CHARACTER_POOL_TYPES
            ),
            self._fetch_weapon_records(token, server_id, cursors, provider),
        )
        records = _flatten(batches)
        logger.info(f"Fetched {len(records)} new records for {uid}")

        if records:
            async with self.session_factory() as session:
                await GachaPullService(session).save_pulls(uid, records)
        return len(records)

    async def _fetch_pool(
        self,
        token: str,
        server_id: str,
        pool: PoolType | str,
        since_seq_id: str | None,
        provider: Provider,
    ) -> list[PullRecord]:
        try:
            return await self.source.fetch_pool_records(
                token, server_id, pool, since_seq_id, provider=provider
            )
        except FETCH_ERRORS as e:
            logger.warning(f"Fetching {pool} failed, skipping it: {e}")
            return []

    async def _fetch_weapon_records(
        self, token: str, server_id: str, cursors: dict[str, str], provider: Provider
    ) -> list[PullRecord]:
        try:
            pools = await self.source.fetch_weapon_pools(token, server_id, provider=provider)
        except FETCH_ERRORS as e:
            logger.warning(f"Fetching weapon pools failed, skipping weapons: {e}")
            return []

        batches = await asyncio.gather(
            *(
                self._fetch_pool(token, server_id, pool.pool_id, cursors.get(pool.pool_id), provider)
                for pool in pools
            )
        )
        return _flatten(batches)
