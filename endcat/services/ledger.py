"""Per-process view of the selected account's banners and the actions on it."""

import httpx
from loguru import logger

from endcat.core.config import settings
from endcat.core.enums import OutcomeStatus, SyncMode
from endcat.core.exceptions import EndcatError, GameLogError, PreconditionError, StorageError
from endcat.models.account import Account
from endcat.schemas.account import AccountOption
from endcat.schemas.gacha import ActionOutcome, BannerSummary, PullRecord, SyncResult
from endcat.services.account import AccountService
from endcat.services.banner import build_banners
from endcat.services.featured import build_featured_checker
from endcat.services.gacha_pull import GachaPullService
from endcat.services.metadata import MetadataService
from endcat.services.sync import LedgerSynchronizer, SessionFactory
from endcat.utils.channel import channel_label


def account_option(account: Account) -> AccountOption:
    """Label an account by role ID (UID as fallback) and its server, when known."""
    role_label = account.role_id or account.uid
    server_label = channel_label(account.channel_id, account.server_id) or account.server_id
    label = f"{role_label}({server_label})" if server_label else role_label
    return AccountOption(label=label, value=account.uid)


class GachaLedger:
    def __init__(
        self,
        synchronizer: LedgerSynchronizer,
        metadata: MetadataService,
        session_factory: SessionFactory | None,
        *,
        pull_list_limit: int = settings.pull_list_limit,
        history_limit: int = settings.top_history_limit,
    ) -> None:
        self.synchronizer = synchronizer
        self.metadata = metadata
        self.session_factory = session_factory
        self.pull_list_limit = pull_list_limit
        self.history_limit = history_limit

        self.uid = ""
        self.accounts: list[Account] = []
        self.banners: list[BannerSummary] = []
        self.loading = False

    @property
    def storage_available(self) -> bool:
        return self.session_factory is not None

    @property
    def account_options(self) -> list[AccountOption]:
        return [account_option(account) for account in self.accounts]

    @property
    def current_nickname(self) -> str:
        account = next((a for a in self.accounts if a.uid == self.uid), None)
        return account.nick_name or "" if account else ""

    @property
    def banner_summary(self) -> list[BannerSummary]:
        return list(self.banners)

    async def _localize(self, records: list[PullRecord]) -> list[PullRecord]:
        names = await self.metadata.get_locale_names()
        return [
            record.model_copy(update={"name": self.metadata.localized_name(names, record)})
            for record in records
        ]

    async def load_from_db(self, uid: str) -> None:
        """Rebuild the banners of an account from storage."""
        if self.session_factory is None or not uid:
            return

        async with self.session_factory() as session:
            records = await GachaPullService(session).list_pulls(uid, self.pull_list_limit)

        featured_checker = build_featured_checker(await self.metadata.get_gacha_pools())
        self.banners = build_banners(
            await self._localize(records),
            history_limit=self.history_limit,
            icon_getter=self.metadata.icon_path if self.metadata.is_available else None,
            featured_checker=featured_checker,
        )
        logger.debug(f"Loaded {len(records)} pulls into {len(self.banners)} banners for {uid}")

    async def reload_accounts(self, prefer_uid: str | None = None) -> None:
        """Reload accounts and select one, keeping the current selection if possible."""
        if self.session_factory is None:
            self.accounts = []
            await self.switch_account("")
            return

        async with self.session_factory() as session:
            self.accounts = list(await AccountService(session).list_accounts())

        uids = [account.uid for account in self.accounts]
        if prefer_uid and prefer_uid in uids:
            next_uid = prefer_uid
        elif self.uid in uids:
            next_uid = self.uid
        else:
            next_uid = uids[0] if uids else ""
        await self.switch_account(next_uid)

    async def switch_account(self, uid: str) -> None:
        self.uid = uid
        if uid:
            await self.load_from_db(uid)
        else:
            self.banners = []

    async def set_language(self, language: str) -> None:
        if self.metadata.set_language(language) and self.uid:
            await self.load_from_db(self.uid)

    def _report(self, mode: SyncMode, result: SyncResult) -> ActionOutcome:
        if result.skipped:
            return ActionOutcome(status=OutcomeStatus.INFO, message="同步进行中", result=result)
        if result.count > 0 or result.account_updated:
            message = (
                f"增量同步完成，新增 {result.count} 条记录"
                if mode == SyncMode.INCREMENTAL
                else "全量同步完成"
            )
            return ActionOutcome(status=OutcomeStatus.SUCCESS, message=message, result=result)
        return ActionOutcome(status=OutcomeStatus.INFO, message="没有新的记录", result=result)

    def _save_failed(self, e: StorageError) -> ActionOutcome:
        # Shown even for background syncs
        logger.opt(exception=e).error("Saving synced pulls failed")
        return ActionOutcome(status=OutcomeStatus.ERROR, message=str(e))

    def _failed(self, e: Exception, silent: bool) -> ActionOutcome:
        if silent:
            logger.warning(f"Background sync failed: {e}")
            return ActionOutcome(status=OutcomeStatus.INFO, message="")
        logger.opt(exception=e).error("Sync failed")
        return ActionOutcome(status=OutcomeStatus.ERROR, message=str(e))

    async def refresh(
        self, mode: SyncMode = SyncMode.INCREMENTAL, *, silent: bool = False
    ) -> ActionOutcome:
        """Sync the selected account and reload its banners when anything changed."""
        if not self.uid:
            return ActionOutcome(status=OutcomeStatus.WARNING, message="请先选择账户")
        if not self.storage_available:
            return ActionOutcome(status=OutcomeStatus.WARNING, message="当前环境无法使用本地存储")

        uid = self.uid
        self.loading = True
        try:
            result = await self.synchronizer.sync_account(uid, mode)
            if not result.skipped and (result.count > 0 or result.account_updated):
                await self.reload_accounts(uid)
        except PreconditionError as e:
            return ActionOutcome(status=OutcomeStatus.WARNING, message=str(e))
        except StorageError as e:
            return self._save_failed(e)
        except EndcatError as e:
            return self._failed(e, silent)
        finally:
            self.loading = False

        return self._report(mode, result)

    async def refresh_from_external_source(
        self,
        mode: SyncMode = SyncMode.INCREMENTAL,
        *,
        log_path: str | None = None,
        silent: bool = False,
    ) -> ActionOutcome:
        """Sync the account found in the game log and switch to it."""
        if not self.storage_available:
            return ActionOutcome(status=OutcomeStatus.WARNING, message="当前环境无法使用本地存储")

        self.loading = True
        try:
            result = await self.synchronizer.sync_from_log(mode, log_path)
            if result.uid:
                await self.reload_accounts(result.uid)
        except (GameLogError, PreconditionError) as e:
            return ActionOutcome(status=OutcomeStatus.WARNING, message=str(e))
        except StorageError as e:
            return self._save_failed(e)
        except (EndcatError, httpx.HTTPError) as e:
            return self._failed(e, silent)
        finally:
            self.loading = False

        return self._report(mode, result)

    async def delete_account(self) -> ActionOutcome:
        """Delete the selected account and its pulls."""
        if not self.uid:
            return ActionOutcome(status=OutcomeStatus.WARNING, message="请先选择要删除的账户")
        if self.session_factory is None:
            return ActionOutcome(status=OutcomeStatus.WARNING, message="当前环境无法使用本地存储")

        async with self.session_factory() as session:
            deleted = await AccountService(session).delete_account(self.uid)
        if not deleted:
            return ActionOutcome(status=OutcomeStatus.WARNING, message=f"账户不存在: {self.uid}")

        logger.info(f"Deleted account {self.uid}")
        self.uid = ""
        await self.reload_accounts()
        return ActionOutcome(status=OutcomeStatus.SUCCESS, message="账户已删除")
