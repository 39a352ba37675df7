import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session, joinedload

from hardban_lab import repositories
from hardban_lab.currency import format_currency, round_money, to_decimal
from hardban_lab.exceptions import ConflictError, NotFoundError, ValidationFailed
from hardban_lab.models import ReleaseDB, RoyaltyDB
from hardban_lab.repositories import paginate
from hardban_lab.schemas import RoyaltyCreate

logger = logging.getLogger(__name__)

DEFAULT_ARTIST_SHARE = Decimal("50.00")


def artist_share(release: ReleaseDB, splits=None) -> Decimal:
    """Percentage of net revenue owed to the release's artist."""
    splits = list(release.splits if splits is None else splits)
    if not splits:
        return DEFAULT_ARTIST_SHARE
    artist = release.artist
    names = {n.strip().lower() for n in (artist.name, artist.stage_name) if n}
    share = sum(
        (to_decimal(s.percentage) for s in splits if s.name.strip().lower() in names),
        Decimal("0"),
    )
    return round_money(share)


def calculate_payout(net, share) -> Decimal:
    return round_money(to_decimal(net) * to_decimal(share) / Decimal("100"))


def serialize_royalty(royalty: RoyaltyDB) -> dict:
    return {
        "id": royalty.id,
        "release_id": royalty.release_id,
        "release_title": royalty.release.title if royalty.release else None,
        "artist_id": royalty.artist_id,
        "platform": royalty.platform,
        "period_start": royalty.period_start,
        "period_end": royalty.period_end,
        "streams": int(royalty.streams or 0),
        "gross_revenue": float(royalty.gross_revenue or 0),
        "net_revenue": float(royalty.net_revenue or 0),
        "artist_share": float(royalty.artist_share or 0),
        "artist_payout": float(royalty.artist_payout or 0),
        "artist_payout_formatted": format_currency(royalty.artist_payout or 0, "USD"),
        "status": royalty.status,
        "payment_date": royalty.payment_date,
        "created_at": royalty.created_at,
    }


def check_period(period_start: date, period_end: date) -> None:
    if period_start and period_end and period_end < period_start:
        raise ValidationFailed("period_end must be on or after period_start")


def filtered_query(db: Session, artist_id=None, release_id=None, status=None, period_start=None, period_end=None):
    query = repositories.royalties.query(db).options(joinedload(RoyaltyDB.release))
    if artist_id is not None:
        query = query.filter(RoyaltyDB.artist_id == artist_id)
    if release_id is not None:
        query = query.filter(RoyaltyDB.release_id == release_id)
    if status:
        query = query.filter(RoyaltyDB.status == status)
    if period_start:
        query = query.filter(RoyaltyDB.period_end >= period_start)
    if period_end:
        query = query.filter(RoyaltyDB.period_start <= period_end)
    return query


def list_royalties(db: Session, page=1, limit=20, **filters):
    query = filtered_query(db, **filters).order_by(RoyaltyDB.period_end.desc(), RoyaltyDB.id.desc())
    items, pagination = paginate(query, page, limit)
    return [serialize_royalty(r) for r in items], pagination


def build_royalty(db: Session, release: ReleaseDB, platform, period_start, period_end, streams, gross, net) -> RoyaltyDB:
    """Stage one royalty row for a release; the caller commits."""
    share = artist_share(release)
    return repositories.royalties.create(
        db,
        commit=False,
        release_id=release.id,
        artist_id=release.artist_id,
        platform=platform,
        period_start=period_start,
        period_end=period_end,
        streams=int(streams or 0),
        gross_revenue=round_money(gross),
        net_revenue=round_money(net),
        artist_share=share,
        artist_payout=calculate_payout(net, share),
        status="pending",
    )


def create_royalty(db: Session, data: RoyaltyCreate) -> dict:
    check_period(data.period_start, data.period_end)
    release = repositories.releases.get(db, data.release_id)
    if not release:
        raise NotFoundError("Release not found")

    net = data.gross_revenue if data.net_revenue is None else data.net_revenue
    royalty = build_royalty(
        db, release, data.platform, data.period_start, data.period_end, data.streams, data.gross_revenue, net,
    )
    db.commit()
    db.refresh(royalty)
    logger.info(f"Recorded royalty {royalty.id} for release {release.id}: payout {royalty.artist_payout}")
    return serialize_royalty(royalty)


def mark_paid(db: Session, royalty_id: int) -> dict:
    royalty = repositories.royalties.get(db, royalty_id)
    if not royalty:
        raise NotFoundError("Royalty not found")
    if royalty.status == "paid":
        raise ConflictError("Royalty is already marked as paid")
    royalty = repositories.royalties.update(db, royalty, {"status": "paid", "payment_date": date.today()})
    logger.info(f"Royalty {royalty_id} marked paid")
    return serialize_royalty(royalty)


def summarize(rows) -> dict:
    totals = defaultdict(lambda: Decimal("0"))
    by_platform = defaultdict(lambda: Decimal("0"))
    by_release = {}

    for row in rows:
        gross = to_decimal(row.gross_revenue)
        net = to_decimal(row.net_revenue)
        payout = to_decimal(row.artist_payout)
        totals["gross"] += gross
        totals["net"] += net
        totals["payout"] += payout
        totals["paid" if row.status == "paid" else "pending"] += payout
        by_platform[row.platform or "unknown"] += net

        entry = by_release.setdefault(row.release_id, {
            "release_id": row.release_id,
            "title": row.release.title if row.release else None,
            "net": Decimal("0"),
            "payout": Decimal("0"),
            "streams": 0,
        })
        entry["net"] += net
        entry["payout"] += payout
        entry["streams"] += int(row.streams or 0)

    return {
        "total_gross": float(totals["gross"]),
        "total_net": float(totals["net"]),
        "total_payout": float(totals["payout"]),
        "paid": float(totals["paid"]),
        "pending": float(totals["pending"]),
        "formatted": {
            "total_gross": format_currency(totals["gross"], "USD"),
            "total_net": format_currency(totals["net"], "USD"),
            "total_payout": format_currency(totals["payout"], "USD"),
            "paid": format_currency(totals["paid"], "USD"),
            "pending": format_currency(totals["pending"], "USD"),
        },
        "by_platform": {k: float(v) for k, v in sorted(by_platform.items())},
        "by_release": [
            {**e, "net": float(e["net"]), "payout": float(e["payout"]),
             "payout_formatted": format_currency(e["payout"], "USD")}
            for e in sorted(by_release.values(), key=lambda e: e["payout"], reverse=True)
        ],
    }


def royalty_summary(db: Session, artist_id=None, period_start=None, period_end=None) -> dict:
    check_period(period_start, period_end)
    rows = filtered_query(db, artist_id=artist_id, period_start=period_start, period_end=period_end).all()
    summary = summarize(rows)
    summary["artist_id"] = artist_id
    summary["count"] = len(rows)
    return summary
