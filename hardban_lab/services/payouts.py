import logging
import uuid
from collections import defaultdict
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from hardban_lab import repositories
from hardban_lab.currency import (
    SUPPORTED_CURRENCIES,
    convert,
    format_currency,
    minimum_payout,
    round_money,
    to_decimal,
)
from hardban_lab.exceptions import ConflictError, NotFoundError, ValidationFailed
from hardban_lab.models import PayoutDB, RoyaltyDB
from hardban_lab.repositories import paginate
from hardban_lab.schemas import PayoutCreate
from hardban_lab.services.activities import record_activity
from hardban_lab.services.artists import require_artist

logger = logging.getLogger(__name__)

# method -> (percent, fixed)
PAYOUT_FEES = {
    "bank_transfer": (Decimal("0"), Decimal("0")),
    "paypal": (Decimal("2"), Decimal("0.30")),
    "stripe": (Decimal("0"), Decimal("0.25")),
    "wise": (Decimal("0.5"), Decimal("0")),
}
METHOD_LABELS = {
    "bank_transfer": "Bank transfer",
    "paypal": "PayPal",
    "stripe": "Stripe",
    "wise": "Wise",
}
COMMITTED_STATUSES = ("pending", "processing", "completed")

# action -> (required status, new status)
TRANSITIONS = {
    "process": ("pending", "processing"),
    "complete": ("processing", "completed"),
    "fail": ("processing", "failed"),
    "cancel": ("pending", "cancelled"),
}


def calculate_fee(amount, method: str, currency: str = "USD") -> Decimal:
    percent, fixed = PAYOUT_FEES[method]
    amount = to_decimal(amount)
    fee = round_money(amount * percent / Decimal("100") + fixed, currency)
    return min(fee, round_money(amount, currency))


def serialize_payout(payout: PayoutDB) -> dict:
    currency = payout.currency
    return {
        "id": payout.id,
        "artist_id": payout.artist_id,
        "amount": float(payout.amount),
        "currency": currency,
        "method": payout.method,
        "fee_amount": float(payout.fee_amount),
        "net_amount": float(payout.net_amount),
        "gross": float(payout.amount),
        "fees": float(payout.fee_amount),
        "net": float(payout.net_amount),
        "gross_formatted": format_currency(payout.amount, currency),
        "fees_formatted": format_currency(payout.fee_amount, currency),
        "net_formatted": format_currency(payout.net_amount, currency),
        "status": payout.status,
        "reference": payout.reference,
        "notes": payout.notes,
        "error_message": payout.error_message,
        "requested_at": payout.requested_at,
        "processed_at": payout.processed_at,
    }


def usd_totals(db: Session, artist_id: int) -> dict:
    """Earned and committed payout amounts for an artist, all in USD."""
    earned = to_decimal(
        db.query(func.coalesce(func.sum(RoyaltyDB.artist_payout), 0)).filter(RoyaltyDB.artist_id == artist_id).scalar()
    )
    committed = defaultdict(lambda: Decimal("0"))
    rows = (
        db.query(PayoutDB.status, PayoutDB.currency, func.coalesce(func.sum(PayoutDB.amount), 0))
        .filter(PayoutDB.artist_id == artist_id, PayoutDB.status.in_(COMMITTED_STATUSES))
        .group_by(PayoutDB.status, PayoutDB.currency)
        .all()
    )
    # royalty payouts are booked in USD, payouts in the currency they were requested in
    for status, payout_currency, amount in rows:
        committed[status] += to_usd(amount, payout_currency)

    paid_out = committed["completed"]
    pending = committed["pending"] + committed["processing"]
    return {
        "earned": earned,
        "paid_out": paid_out,
        "pending": pending,
        "available": earned - paid_out - pending,
    }


def to_usd(amount, currency: str) -> Decimal:
    if (currency or "USD").upper() == "USD":
        return to_decimal(amount)
    return convert(amount, currency, "USD")


def balance(db: Session, artist_id: int, currency: str = "USD") -> dict:
    require_artist(db, artist_id)
    currency = (currency or "USD").upper()
    totals = {key: convert(value, "USD", currency) for key, value in usd_totals(db, artist_id).items()}
    return {
        "artist_id": artist_id,
        "currency": currency,
        "total_earned": float(totals["earned"]),
        "total_paid_out": float(totals["paid_out"]),
        "pending": float(totals["pending"]),
        "available": float(totals["available"]),
        "available_formatted": format_currency(totals["available"], currency),
        "minimum_payout": float(minimum_payout(currency)),
    }


def new_reference() -> str:
    return f"PO-{datetime.utcnow():%Y%m%d}-{uuid.uuid4().hex[:8].upper()}"


def request_payout(db: Session, data: PayoutCreate, user=None) -> dict:
    currency = data.currency.upper()
    if currency not in SUPPORTED_CURRENCIES:
        raise ValidationFailed(f"Unsupported currency: {currency}")

    amount = round_money(data.amount, currency)
    minimum = minimum_payout(currency)
    if amount <= 0 or amount < minimum:
        raise ValidationFailed(f"Minimum payout for {currency} is {minimum}")

    require_artist(db, data.artist_id)
    available = usd_totals(db, data.artist_id)["available"]
    requested = to_usd(amount, currency)
    if requested > available:
        logger.warning(
            f"Payout of {amount} {currency} ({requested} USD) refused for artist {data.artist_id}, "
            f"available {round_money(available)} USD"
        )
        raise ValidationFailed("Insufficient balance for payout")

    fee = calculate_fee(amount, data.method, currency)
    payout = repositories.payouts.create(
        db,
        commit=False,
        artist_id=data.artist_id,
        amount=amount,
        currency=currency,
        method=data.method,
        fee_amount=fee,
        net_amount=amount - fee,
        status="pending",
        reference=new_reference(),
        notes=data.notes,
    )
    record_activity(db, "payout_requested", f"Payout {payout.reference} requested", user=user,
                    details=format_currency(amount, currency))
    db.commit()
    db.refresh(payout)
    logger.info(f"Payout {payout.reference} of {amount} {currency} requested for artist {data.artist_id}")
    return serialize_payout(payout)


def transition(db: Session, payout_id: int, action: str, reason: str = None) -> dict:
    payout = repositories.payouts.get(db, payout_id)
    if not payout:
        raise NotFoundError("Payout not found")

    required, target = TRANSITIONS[action]
    if payout.status != required:
        raise ConflictError(f"Cannot {action} a payout in status {payout.status}")

    values = {"status": target}
    if action == "complete":
        values["processed_at"] = datetime.utcnow()
    if action == "fail":
        if not reason or not reason.strip():
            raise ValidationFailed("A failure reason is required")
        values["error_message"] = reason.strip()
        values["processed_at"] = datetime.utcnow()

    payout = repositories.payouts.update(db, payout, values)
    logger.info(f"Payout {payout.reference} moved {required} -> {target}")
    return serialize_payout(payout)


def list_payouts(db: Session, artist_id=None, status=None, currency=None, page=1, limit=20) -> dict:
    query = repositories.payouts.query(db)
    if artist_id is not None:
        query = query.filter(PayoutDB.artist_id == artist_id)
    if status:
        query = query.filter(PayoutDB.status == status)
    if currency:
        query = query.filter(PayoutDB.currency == currency.upper())

    by_status = defaultdict(lambda: Decimal("0"))
    for row in query.all():
        by_status[row.status] += to_decimal(row.amount)
    total = sum(by_status.values(), Decimal("0"))

    items, pagination = paginate(query.order_by(PayoutDB.requested_at.desc(), PayoutDB.id.desc()), page, limit)
    return {
        "items": [serialize_payout(p) for p in items],
        "pagination": pagination,
        "summary": {
            "total_amount": float(total),
            "total_amount_formatted": format_currency(total, (currency or "USD").upper()),
            "by_status": {k: float(v) for k, v in sorted(by_status.items())},
        },
    }


def payout_methods(currency: str = "USD") -> list:
    currency = (currency or "USD").upper()
    return [
        {
            "method": method,
            "name": METHOD_LABELS[method],
            "fee_percent": float(percent),
            "fee_fixed": float(fixed),
            "minimum_amount": float(minimum_payout(currency)),
            "currency": currency,
        }
        for method, (percent, fixed) in PAYOUT_FEES.items()
    ]
