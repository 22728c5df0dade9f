from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from endcat.api.deps import get_ledger
from endcat.schemas.account import (
    AccountList,
    AccountRead,
    AccountUpsert,
    SwitchAccountRequest,
)
from endcat.schemas.common import APIResponse
from endcat.services.account import AccountService
from endcat.services.ledger import GachaLedger

router = APIRouter(prefix="/accounts", tags=["accounts"])


def _account_list(ledger: GachaLedger) -> AccountList:
    return AccountList(
        current=ledger.uid, nick_name=ledger.current_nickname, options=ledger.account_options
    )


@router.get("/")
async def get_accounts(
    ledger: Annotated[GachaLedger, Depends(get_ledger)],
) -> APIResponse[AccountList]:
    return APIResponse(data=_account_list(ledger))


@router.post("/")
async def upsert_account(
    data: AccountUpsert,
    service: Annotated[AccountService, Depends()],
    ledger: Annotated[GachaLedger, Depends(get_ledger)],
) -> APIResponse[AccountRead]:
    account = await service.upsert_account(data)
    await ledger.reload_accounts(account.uid)
    return APIResponse(data=AccountRead.model_validate(account), message="账户已保存")


@router.put("/current")
async def switch_account(
    body: SwitchAccountRequest, ledger: Annotated[GachaLedger, Depends(get_ledger)]
) -> APIResponse[AccountList]:
    if body.uid not in {account.uid for account in ledger.accounts}:
        raise HTTPException(status_code=404, detail="找不到账户")
    await ledger.switch_account(body.uid)
    return APIResponse(data=_account_list(ledger))


@router.delete("/current")
async def delete_current_account(
    ledger: Annotated[GachaLedger, Depends(get_ledger)],
) -> APIResponse[AccountList]:
    outcome = await ledger.delete_account()
    return APIResponse(status=outcome.status, message=outcome.message, data=_account_list(ledger))
