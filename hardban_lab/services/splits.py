"""Royalty split validation and replacement for releases and books."""
import logging
from decimal import Decimal
from typing import List, Tuple

from sqlalchemy.orm import Session

from hardban_lab import repositories
from hardban_lab.currency import to_decimal
from hardban_lab.exceptions import ValidationFailed
from hardban_lab.models import SPLIT_ROLES, RoyaltySplitDB

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")
TOLERANCE = Decimal("0.01")


def _entry(split):
    if isinstance(split, dict):
        return split.get("name"), split.get("role", "artist"), split.get("percentage")
    return split.name, split.role, split.percentage


def validate_splits(entries) -> Tuple[List[dict], List[str], Decimal]:
    """Check a full split set.

    Returns the normalized entries, non-blocking warnings and the total.
    Raises ValidationFailed listing every problem found.
    """
    errors = []
    warnings = []
    normalized = []
    seen = set()

    if not entries:
        raise ValidationFailed("At least one split is required")

    for index, split in enumerate(entries, start=1):
        name, role, raw_percentage = _entry(split)
        name = (name or "").strip()
        role = (role or "artist").strip().lower()
        percentage = to_decimal(raw_percentage)

        if not name:
            errors.append(f"Split {index}: name is required")
        elif name.lower() in seen:
            errors.append(f"Duplicate split name: {name}")
        else:
            seen.add(name.lower())

        if role not in SPLIT_ROLES:
            errors.append(f"Split {index}: invalid role '{role}'")

        if percentage < 0 or percentage > HUNDRED:
            errors.append(f"Split {index}: percentage must be between 0 and 100")
        elif percentage.as_tuple().exponent < -2:
            errors.append(f"Split {index}: percentage can have at most 2 decimal places")

        if percentage == 0:
            warnings.append(f"{name or index} has a 0% share")
        elif percentage < 1:
            warnings.append(f"{name or index} has a share below 1%")
        if percentage > 50:
            warnings.append(f"{name or index} has a share above 50%")
        if role == "artist" and 0 < percentage < 10:
            warnings.append(f"Artist {name} has a share below 10%")
        if role == "songwriter" and 0 < percentage < 5:
            warnings.append(f"Songwriter {name} has a share below 5%")

        normalized.append({"name": name, "role": role, "percentage": percentage})

    total = sum((s["percentage"] for s in normalized), Decimal("0"))
    if total > HUNDRED + TOLERANCE:
        errors.append(f"Total percentage ({total.normalize():f}%) exceeds 100%")

    if errors:
        message = errors[-1] if errors[-1].startswith("Total percentage") else "Invalid royalty splits"
        raise ValidationFailed(message, errors=errors)
    return normalized, warnings, total


def splits_total(splits) -> Decimal:
    return sum((to_decimal(s.percentage) for s in splits), Decimal("0"))


def serialize_split(split: RoyaltySplitDB) -> dict:
    return {
        "id": split.id,
        "name": split.name,
        "role": split.role,
        "percentage": float(split.percentage),
    }


def splits_payload(splits, warnings=None) -> dict:
    total = splits_total(splits)
    return {
        "splits": [serialize_split(s) for s in splits],
        "total": float(total),
        "label_share": float(max(HUNDRED - total, Decimal("0"))),
        "warnings": warnings or [],
    }


def replace_splits(db: Session, owner_field: str, owner_id: int, entries, commit: bool = True) -> Tuple[list, List[str]]:
    """Swap the whole split set of one release or book in a single transaction."""
    normalized, warnings, total = validate_splits(entries)
    try:
        deleted = (
            db.query(RoyaltySplitDB)
            .filter(getattr(RoyaltySplitDB, owner_field) == owner_id)
            .delete(synchronize_session="fetch")
        )
        logger.info(f"Removed {deleted} old splits for {owner_field}={owner_id}")

        created = []
        for split in normalized:
            created.append(repositories.splits.create(db, commit=False, **{owner_field: owner_id}, **split))
        if commit:
            db.commit()
            for row in created:
                db.refresh(row)
    except Exception:
        db.rollback()
        logger.error(f"Failed to replace splits for {owner_field}={owner_id}", exc_info=True)
        raise

    logger.info(f"Saved {len(created)} splits for {owner_field}={owner_id}, total {total}%")
    return created, warnings
