from collections.abc import Sequence
from typing import Annotated

from fastapi import Depends
from loguru import logger
from sqlalchemy import delete
from sqlmodel import col, desc, select
from sqlmodel.ext.asyncio.session import AsyncSession

from endcat.core.db import get_db
from endcat.models.account import Account
from endcat.models.gacha_pull import GachaPull
from endcat.schemas.account import AccountTokens, AccountUpsert
from endcat.schemas.gacha import RoleInfo

TOKEN_FIELDS = ("user_token", "oauth_token", "u8_token")


class AccountService:
    def __init__(self, db: Annotated[AsyncSession, Depends(get_db)]) -> None:
        self.db = db

    async def list_accounts(self) -> Sequence[Account]:
        """List accounts, most recently updated first."""
        result = await self.db.exec(select(Account).order_by(desc(col(Account.updated_at))))
        return result.all()

    async def get_account(self, uid: str) -> Account | None:
        result = await self.db.exec(select(Account).where(Account.uid == uid))
        return result.first()

    async def get_account_tokens(self, uid: str) -> AccountTokens | None:
        account = await self.get_account(uid)
        if not account:
            return None
        return AccountTokens.model_validate(account)

    async def upsert_account(self, data: AccountUpsert) -> Account:
        """Create an account or merge fields into the stored one.

        Missing fields keep their stored values and empty tokens never replace
        stored tokens.
        """
        fields = data.model_dump(exclude={"uid"}, exclude_none=True)
        for token_field in TOKEN_FIELDS:
            if not fields.get(token_field):
                fields.pop(token_field, None)

        account = await self.get_account(data.uid)
        if account:
            account.sqlmodel_update(fields)
        else:
            account = Account(uid=data.uid, **fields)
            logger.info(f"Created account {data.uid}")

        self.db.add(account)
        await self.db.commit()
        await self.db.refresh(account)
        return account

    async def update_profile(self, uid: str, role: RoleInfo) -> bool:
        """Store the role profile on an account.

        Returns:
            Whether any stored field changed.
        """
        account = await self.get_account(uid)
        if not account:
            return False

        changes = {
            field: value
            for field, value in role.model_dump(include={"role_id", "nick_name", "channel_id"}).items()
            if value is not None and getattr(account, field) != value
        }
        if not changes:
            return False

        account.sqlmodel_update(changes)
        self.db.add(account)
        await self.db.commit()
        logger.info(f"Updated profile of {uid}: {sorted(changes)}")
        return True

    async def delete_account(self, uid: str) -> bool:
        """Delete an account together with its pulls."""
        account = await self.get_account(uid)
        if not account:
            return False

        await self.db.execute(delete(GachaPull).where(col(GachaPull.uid) == uid))
        await self.db.delete(account)
        await self.db.commit()
        return True
