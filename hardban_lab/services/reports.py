"""Royalty statement ingestion (CSV/TSV/XLSX via pandas) and XLSX/ZIP statement export."""
import io
import logging
import os
import re
import tempfile
import zipfile
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import pandas as pd
from sqlalchemy.orm import Session, joinedload

from hardban_lab import repositories
from hardban_lab.currency import round_money, to_decimal
from hardban_lab.exceptions import NotFoundError, ValidationFailed
from hardban_lab.models import ArtistDB, ReleaseDB, RoyaltyDB, TrackDB
from hardban_lab.services.activities import record_activity
from hardban_lab.services.royalties import build_royalty, check_period, summarize

logger = logging.getLogger(__name__)

COLUMN_ALIASES = {
    "title": ["track_title", "track", "title", "song_name", "track_name"],
    "isrc": ["isrc"],
    "release": ["release_title", "album", "release"],
    "streams": ["streams", "quantity", "units", "plays", "views"],
    "gross": ["gross", "gross_revenue", "revenue", "royalty"],
    "net": ["net", "net_revenue", "artist_royalties", "your_estimated_revenue_usd"],
}

STATEMENT_COLUMNS = [
    "release", "platform", "period_start", "period_end",
    "streams", "gross_revenue", "net_revenue", "artist_share", "artist_payout", "status",
]

SUPPORTED_EXTENSIONS = (".csv", ".tsv", ".xlsx")


def normalize_column(name) -> str:
    return re.sub(r"[^\w]", "_", str(name).strip().lower())


def read_statement(contents: bytes, filename: str) -> pd.DataFrame:
    """Load one uploaded statement into a DataFrame with lower_snake_case columns."""
    name = (filename or "").lower()
    if not name.endswith(SUPPORTED_EXTENSIONS):
        raise ValidationFailed("Unsupported report format")
    try:
        if name.endswith(".xlsx"):
            df = pd.read_excel(io.BytesIO(contents))
        elif name.endswith(".tsv"):
            df = pd.read_csv(io.BytesIO(contents), sep="\t")
        else:
            df = pd.read_csv(io.BytesIO(contents))
    except Exception as e:
        logger.error(f"Failed to read report {filename}: {e}")
        raise ValidationFailed("Unsupported report format")

    df.columns = [normalize_column(col) for col in df.columns]
    return df


def pick_column(columns, field: str) -> Optional[str]:
    return next((col for col in COLUMN_ALIASES[field] if col in columns), None)


def _text(value) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def parse_statement(df: pd.DataFrame) -> List[dict]:
    """Turn statement rows into records with title, isrc, release, streams, gross and net."""
    columns = {field: pick_column(df.columns, field) for field in COLUMN_ALIASES}
    if columns["net"] is None and columns["gross"] is None:
        logger.warning("Statement has neither a gross nor a net revenue column")

    records = []
    for _, row in df.iterrows():
        gross = to_decimal(row[columns["gross"]]) if columns["gross"] else Decimal("0")
        net = to_decimal(row[columns["net"]]) if columns["net"] else gross
        if not columns["gross"]:
            gross = net
        isrc = _text(row[columns["isrc"]]) if columns["isrc"] else None
        records.append({
            "title": _text(row[columns["title"]]) if columns["title"] else None,
            "isrc": isrc.replace("-", "").upper() if isrc else None,
            "release": _text(row[columns["release"]]) if columns["release"] else None,
            "streams": int(to_decimal(row[columns["streams"]])) if columns["streams"] else 0,
            "gross": gross,
            "net": net,
        })
    return records


class ReleaseMatcher:
    """Resolve statement records to release ids: ISRC, then track title, then release title."""

    def __init__(self, db: Session):
        tracks = db.query(TrackDB).order_by(TrackDB.id).all()
        releases = db.query(ReleaseDB).order_by(ReleaseDB.id).all()
        self.by_isrc = {t.isrc: t.release_id for t in tracks if t.isrc}
        self.by_track_title = {}
        for t in tracks:
            self.by_track_title.setdefault(t.title.strip().lower(), t.release_id)
        self.by_release_title = {}
        for r in releases:
            self.by_release_title.setdefault(r.title.strip().lower(), r.id)

    def match(self, record: dict) -> Optional[int]:
        if record["isrc"] and record["isrc"] in self.by_isrc:
            return self.by_isrc[record["isrc"]]
        if record["title"] and record["title"].lower() in self.by_track_title:
            return self.by_track_title[record["title"].lower()]
        if record["release"] and record["release"].lower() in self.by_release_title:
            return self.by_release_title[record["release"].lower()]
        return None


def aggregate_by_release(records: List[dict], matcher: ReleaseMatcher) -> Tuple[Dict[int, dict], List[str]]:
    totals = defaultdict(lambda: {"streams": 0, "gross": Decimal("0"), "net": Decimal("0"), "records": 0})
    unmatched = []
    for record in records:
        release_id = matcher.match(record)
        if release_id is None:
            unmatched.append(record["title"] or record["release"] or record["isrc"] or "Unknown Track")
            continue
        entry = totals[release_id]
        entry["streams"] += record["streams"]
        entry["gross"] += record["gross"]
        entry["net"] += record["net"]
        entry["records"] += 1
    return dict(totals), unmatched


def import_statements(db: Session, files, platform: str, period_start, period_end, user=None) -> dict:
    """Ingest uploaded statements and book one royalty per matched release in a single transaction."""
    check_period(period_start, period_end)
    if not files:
        raise ValidationFailed("At least one report file is required")

    records = []
    for filename, contents in files:
        df = read_statement(contents, filename)
        parsed = parse_statement(df)
        logger.info(f"Parsed {len(parsed)} rows from {filename}")
        records.extend(parsed)

    totals, unmatched = aggregate_by_release(records, ReleaseMatcher(db))
    if unmatched:
        logger.warning(f"{len(unmatched)} statement rows did not match any release")

    created = []
    try:
        for release_id, entry in totals.items():
            release = repositories.releases.get(db, release_id)
            royalty = build_royalty(
                db, release, platform, period_start, period_end, entry["streams"], entry["gross"], entry["net"],
            )
            created.append(royalty)
            repositories.music_analytics.create(
                db,
                commit=False,
                release_id=release_id,
                platform=platform,
                date=period_end,
                streams=entry["streams"],
                revenue=round_money(entry["net"]),
            )
            repositories.releases.update(db, release, {
                "streams": int(release.streams or 0) + entry["streams"],
                "revenue": round_money(to_decimal(release.revenue) + entry["net"]),
            }, commit=False)

        record_activity(
            db, "royalty_import", f"Imported {platform} statement",
            user=user, details=f"{len(created)} royalties from {len(records)} rows",
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.error("Statement import failed, nothing was saved", exc_info=True)
        raise

    matched = sum(e["records"] for e in totals.values())
    total_gross = sum((e["gross"] for e in totals.values()), Decimal("0"))
    total_net = sum((e["net"] for e in totals.values()), Decimal("0"))
    logger.info(f"Statement import done: {matched}/{len(records)} rows matched, {len(created)} royalties")
    return {
        "parsed_records": len(records),
        "matched_records": matched,
        "unmatched": unmatched,
        "royalties_created": len(created),
        "royalty_ids": [r.id for r in created],
        "total_gross": float(round_money(total_gross)),
        "total_net": float(round_money(total_net)),
    }


# --- export ---

def _statement_frame(rows) -> pd.DataFrame:
    lines = [{
        "release": r.release.title if r.release else "",
        "platform": r.platform or "",
        "period_start": r.period_start.isoformat(),
        "period_end": r.period_end.isoformat(),
        "streams": int(r.streams or 0),
        "gross_revenue": float(r.gross_revenue or 0),
        "net_revenue": float(r.net_revenue or 0),
        "artist_share": float(r.artist_share or 0),
        "artist_payout": float(r.artist_payout or 0),
        "status": r.status,
    } for r in rows]
    return pd.DataFrame(lines, columns=STATEMENT_COLUMNS)


def _write_summary_sheet(writer, title: str, summary: dict) -> None:
    workbook = writer.book
    worksheet = workbook.add_worksheet("Summary")
    bold = workbook.add_format({"bold": True})
    money_format = workbook.add_format({"num_format": "#,##0.00"})

    worksheet.write(0, 0, title, bold)
    labels = [
        ("Gross revenue:", "total_gross"),
        ("Net revenue:", "total_net"),
        ("Artist payout:", "total_payout"),
        ("Paid:", "paid"),
        ("Pending:", "pending"),
    ]
    for offset, (label, key) in enumerate(labels, start=2):
        worksheet.write(offset, 0, label, bold)
        worksheet.write(offset, 1, summary[key], money_format)

    worksheet.set_column("A:A", 25)
    worksheet.set_column("B:B", 15, money_format)


def _royalty_rows(db: Session, artist_id=None, period_start=None, period_end=None):
    query = db.query(RoyaltyDB).options(joinedload(RoyaltyDB.release))
    if artist_id is not None:
        query = query.filter(RoyaltyDB.artist_id == artist_id)
    if period_start:
        query = query.filter(RoyaltyDB.period_end >= period_start)
    if period_end:
        query = query.filter(RoyaltyDB.period_start <= period_end)
    return query.order_by(RoyaltyDB.period_start, RoyaltyDB.id).all()


def build_artist_statement(artist: ArtistDB, rows) -> bytes:
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        _statement_frame(rows).to_excel(writer, sheet_name="Royalties", index=False, float_format="%.2f")
        _write_summary_sheet(writer, f"Royalty statement: {artist.stage_name or artist.name}", summarize(rows))
    output.seek(0)
    return output.getvalue()


def artist_statement(db: Session, artist_id: int, period_start=None, period_end=None) -> Tuple[str, bytes]:
    check_period(period_start, period_end)
    artist = repositories.artists.get(db, artist_id)
    if not artist:
        raise NotFoundError("Artist not found")
    rows = _royalty_rows(db, artist_id, period_start, period_end)
    logger.info(f"Building statement for artist {artist_id} with {len(rows)} royalty lines")
    return statement_filename(artist), build_artist_statement(artist, rows)


def statement_filename(artist: ArtistDB) -> str:
    slug = re.sub(r"[^\w-]", "_", artist.stage_name or artist.name).strip("_") or "artist"
    return f"{slug}_{artist.id}_statement.xlsx"


def build_statements_zip(db: Session, period_start=None, period_end=None) -> str:
    """Write per-artist statements plus 00_SUMMARY.xlsx into a temp ZIP and return its path."""
    check_period(period_start, period_end)
    rows = _royalty_rows(db, None, period_start, period_end)
    by_artist = defaultdict(list)
    for row in rows:
        by_artist[row.artist_id].append(row)
    artists = {a.id: a for a in db.query(ArtistDB).filter(ArtistDB.id.in_(list(by_artist))).all()}

    with tempfile.NamedTemporaryFile(delete=False, suffix=".zip") as tmp_zip:
        zip_filename = tmp_zip.name

    try:
        with zipfile.ZipFile(zip_filename, "w", zipfile.ZIP_DEFLATED) as zipf:
            overview = []
            for artist_id, artist_rows in sorted(by_artist.items()):
                artist = artists[artist_id]
                zipf.writestr(statement_filename(artist), build_artist_statement(artist, artist_rows))
                totals = summarize(artist_rows)
                overview.append({
                    "artist": artist.stage_name or artist.name,
                    "gross_revenue": totals["total_gross"],
                    "net_revenue": totals["total_net"],
                    "artist_payout": totals["total_payout"],
                    "paid": totals["paid"],
                    "pending": totals["pending"],
                })

            summary_output = io.BytesIO()
            with pd.ExcelWriter(summary_output, engine="xlsxwriter") as writer:
                pd.DataFrame(overview, columns=[
                    "artist", "gross_revenue", "net_revenue", "artist_payout", "paid", "pending",
                ]).to_excel(writer, sheet_name="Artists", index=False, float_format="%.2f")
                _write_summary_sheet(writer, "All artists", summarize(rows))
            summary_output.seek(0)
            zipf.writestr("00_SUMMARY.xlsx", summary_output.getvalue())
    except Exception:
        os.unlink(zip_filename)
        logger.error("Failed to build statements archive", exc_info=True)
        raise

    logger.info(f"Built statements archive for {len(by_artist)} artists")
    return zip_filename
