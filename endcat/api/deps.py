from fastapi import HTTPException, Request

from endcat.services.ledger import GachaLedger


def get_ledger(request: Request) -> GachaLedger:
    ledger: GachaLedger | None = getattr(request.app.state, "ledger", None)
    if ledger is None:
        raise HTTPException(status_code=503, detail="服务尚未就绪")
    return ledger
