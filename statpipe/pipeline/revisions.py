"""Keep the latest published revision of each observation."""

from __future__ import annotations

import logging

from statpipe.common.constants import DEFAULT_VALUE_COLUMN, REVISION_FIELD
from statpipe.common.models import RawRecord

logger = logging.getLogger(__name__)


def revision_key(row: RawRecord, *, value_column: str = DEFAULT_VALUE_COLUMN) -> str:
    return "|".join(
        "" if value is None else str(value)
        for key, value in row.items()
        if key not in (REVISION_FIELD, value_column)
    )


def _revision_of(row: RawRecord) -> int:
    value = row.get(REVISION_FIELD)
    return value if isinstance(value, int) else 0


def reconcile_revisions(
    rows: list[RawRecord],
    *,
    value_column: str = DEFAULT_VALUE_COLUMN,
) -> list[RawRecord]:
    """Collapse rows that differ only by revision and value.

    Per revision key the row with the strictly greatest revision survives; on
    equal revisions the first row seen is kept. Survivors keep the order in
    which their key first appeared and lose the revision field. Rows without
    a revision marker are returned unchanged.
    """
    if not rows or REVISION_FIELD not in rows[0]:
        return rows

    best: dict[str, tuple[int, RawRecord]] = {}
    for row in rows:
        key = revision_key(row, value_column=value_column)
        revision = _revision_of(row)
        existing = best.get(key)
        # Reassigning an existing key keeps its first-seen position.
        if existing is None or revision > existing[0]:
            best[key] = (revision, row)

    reconciled = [
        {k: v for k, v in row.items() if k != REVISION_FIELD}
        for _revision, row in best.values()
    ]
    logger.debug("Revision reconciliation kept %d of %d rows", len(reconciled), len(rows))
    return reconciled
