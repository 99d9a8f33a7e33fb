from fastapi import APIRouter, Depends
from sqlmodel import Session, text
from datetime import datetime, timezone

from storefront.database import get_session
from storefront.dependencies.services import get_payment_gateway, get_storage
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.storage import SignedUrlGateway

router = APIRouter()

@router.get("/check")
def health_check(
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
    storage: SignedUrlGateway = Depends(get_storage),
):
    db_status = "ok"

    try:
        # simple DB ping
        session.exec(text("SELECT 1"))
    except Exception:
        db_status = "failed"

    return {
        "status": "ok",
        "database": db_status,
        "payment_gateway": gateway.state.value,
        "storage": storage.state.value,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
