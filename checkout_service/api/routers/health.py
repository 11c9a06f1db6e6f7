# checkout_service/api/routers/health.py
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from checkout_service.api.deps import get_tx

router = APIRouter(tags=["health"])


@router.get("/health")
def health(tx: Session = Depends(get_tx)):
    tx.execute(text("SELECT 1"))
    return {"status": "ok"}
