from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from hardban_lab.database import get_db
from hardban_lab.models import UserDB
from hardban_lab.schemas import FailRequest, PayoutCreate
from hardban_lab.security import require_roles
from hardban_lab.services import payouts

router = APIRouter(prefix="/api/music/payouts", tags=["payouts"], dependencies=[Depends(require_roles())])


@router.get("")
def list_payouts(
    artist_id: Optional[int] = None,
    status: Optional[str] = None,
    currency: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return {"success": True, **payouts.list_payouts(db, artist_id, status, currency, page, limit)}


@router.post("", status_code=201)
def request_payout(data: PayoutCreate, db: Session = Depends(get_db), user: UserDB = Depends(require_roles())):
    return {"success": True, "payout": payouts.request_payout(db, data, user)}


@router.get("/methods")
def payout_methods(currency: str = "USD"):
    return {"success": True, "methods": payouts.payout_methods(currency)}


@router.get("/balance/{artist_id}")
def artist_balance(artist_id: int, currency: str = "USD", db: Session = Depends(get_db)):
    return {"success": True, "balance": payouts.balance(db, artist_id, currency.upper())}


@router.post("/{payout_id}/process")
def process_payout(payout_id: int, db: Session = Depends(get_db)):
    return {"success": True, "payout": payouts.transition(db, payout_id, "process")}


@router.post("/{payout_id}/complete")
def complete_payout(payout_id: int, db: Session = Depends(get_db)):
    return {"success": True, "payout": payouts.transition(db, payout_id, "complete")}


@router.post("/{payout_id}/fail")
def fail_payout(payout_id: int, data: Optional[FailRequest] = None, db: Session = Depends(get_db)):
    reason = data.reason if data else None
    return {"success": True, "payout": payouts.transition(db, payout_id, "fail", reason)}


@router.post("/{payout_id}/cancel")
def cancel_payout(payout_id: int, db: Session = Depends(get_db)):
    return {"success": True, "payout": payouts.transition(db, payout_id, "cancel")}
