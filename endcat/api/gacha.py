from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query

from endcat.api.deps import get_ledger
from endcat.core.enums import SyncMode
from endcat.schemas.common import APIResponse
from endcat.schemas.gacha import ActionOutcome, BannerSummary, LanguageUpdate, SyncResult
from endcat.services.ledger import GachaLedger

router = APIRouter(prefix="/gacha", tags=["gacha"])


def _outcome_response(outcome: ActionOutcome) -> APIResponse[SyncResult]:
    return APIResponse(status=outcome.status, message=outcome.message, data=outcome.result)


@router.get("/banners")
async def get_banners(
    ledger: Annotated[GachaLedger, Depends(get_ledger)],
) -> APIResponse[list[BannerSummary]]:
    return APIResponse(data=ledger.banner_summary)


@router.post("/refresh")
async def refresh(
    ledger: Annotated[GachaLedger, Depends(get_ledger)],
    mode: Annotated[SyncMode, Query()] = SyncMode.INCREMENTAL,
    silent: Annotated[bool, Query()] = False,
) -> APIResponse[SyncResult]:
    outcome = await ledger.refresh(mode, silent=silent)
    return _outcome_response(outcome)


@router.post("/refresh/log")
async def refresh_from_log(
    ledger: Annotated[GachaLedger, Depends(get_ledger)],
    mode: Annotated[SyncMode, Query()] = SyncMode.INCREMENTAL,
    log_path: Annotated[str | None, Body(embed=True)] = None,
) -> APIResponse[SyncResult]:
    outcome = await ledger.refresh_from_external_source(mode, log_path=log_path)
    return _outcome_response(outcome)


@router.put("/language")
async def set_language(
    body: LanguageUpdate, ledger: Annotated[GachaLedger, Depends(get_ledger)]
) -> APIResponse[list[BannerSummary]]:
    await ledger.set_language(body.language)
    return APIResponse(data=ledger.banner_summary, message=f"语言已切换为 {ledger.metadata.language}")
