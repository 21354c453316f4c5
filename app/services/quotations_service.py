import logging
import uuid
from typing import Dict, List, Sequence, Tuple

from ..core.database import Database
from ..core.errors import NotFound, ValidationError
from ..models.item import Item
from ..models.quotation import (
    Quotation,
    QuotationCreate,
    QuotationLine,
    QuotationStatus,
    QuotationUpdate,
    QuotationVersion,
    QuotationVersionCreate,
    VersionLineInput,
)
from .clients_service import _client_from_row
from .items_service import _item_from_row

log = logging.getLogger(__name__)

INITIAL_VERSION = "1.0"

QUOTATION_SELECT = """
SELECT q.*,
       to_jsonb(c) AS client,
       COALESCE((
         SELECT jsonb_agg(
                  to_jsonb(v) || jsonb_build_object('items', COALESCE((
                    SELECT jsonb_agg(to_jsonb(li))
                    FROM quotation_items li
                    WHERE li.quotation_version_id = v.id
                  ), '[]'::jsonb))
                  ORDER BY v.created_at
                )
         FROM quotation_versions v
         WHERE v.quotation_id = q.id
       ), '[]'::jsonb) AS versions
FROM quotations q
LEFT JOIN clients c ON c.id = q.client_id
"""

# Cascade delete, executed in this order inside one transaction
LOCK_QUOTATION = "SELECT id FROM quotations WHERE id = %s FOR UPDATE"
SELECT_VERSION_IDS = "SELECT id FROM quotation_versions WHERE quotation_id = %s"
DELETE_VERSION_ITEMS = "DELETE FROM quotation_items WHERE quotation_version_id = ANY(%s)"
DELETE_VERSIONS = "DELETE FROM quotation_versions WHERE id = ANY(%s)"
DELETE_QUOTATION = "DELETE FROM quotations WHERE id = %s"

INSERT_VERSION = """
INSERT INTO quotation_versions (
  id, quotation_id, version, brand, is_final, subtotal, margin_total, tax_total, grand_total
)
VALUES (
  %(id)s, %(quotation_id)s, %(version)s, %(brand)s, %(is_final)s,
  %(subtotal)s, %(margin_total)s, %(tax_total)s, %(grand_total)s
)
RETURNING *
"""

INSERT_LINE = """
INSERT INTO quotation_items (
  id, quotation_version_id, item_id, description, quantity, rate, margin_percent, tax_percent, line_total
)
VALUES (
  %(id)s, %(quotation_version_id)s, %(item_id)s, %(description)s, %(quantity)s, %(rate)s,
  %(margin_percent)s, %(tax_percent)s, %(line_total)s
)
"""


def _line_from_row(row: dict) -> QuotationLine:
    return QuotationLine(
        id=row["id"],
        quotationVersionId=row["quotation_version_id"],
        itemId=row.get("item_id"),
        description=row.get("description"),
        quantity=float(row.get("quantity") or 0),
        rate=float(row.get("rate") or 0),
        marginPercent=float(row.get("margin_percent") or 0),
        taxPercent=float(row.get("tax_percent") or 0),
        lineTotal=float(row.get("line_total") or 0),
    )


def _version_from_row(row: dict) -> QuotationVersion:
    return QuotationVersion(
        id=row["id"],
        quotationId=row["quotation_id"],
        version=row.get("version") or "",
        brand=row.get("brand"),
        isFinal=bool(row.get("is_final")),
        subtotal=float(row.get("subtotal") or 0),
        marginTotal=float(row.get("margin_total") or 0),
        taxTotal=float(row.get("tax_total") or 0),
        grandTotal=float(row.get("grand_total") or 0),
        createdAt=row.get("created_at"),
        items=[_line_from_row(li) for li in row.get("items") or []],
    )


def _quotation_from_row(row: dict) -> Quotation:
    return Quotation(
        id=row["id"],
        clientId=row["client_id"],
        title=row.get("title") or "",
        status=row.get("status") or QuotationStatus.DRAFT,
        createdAt=row.get("created_at"),
        updatedAt=row.get("updated_at"),
        client=_client_from_row(row.get("client")),
        versions=[_version_from_row(v) for v in row.get("versions") or []],
    )


def price_lines(lines: Sequence[VersionLineInput], items: Dict[str, Item]) -> Tuple[List[dict], Dict[str, float]]:
    """
    Price version lines against the item master.

    Margin and tax percentages come from the line, falling back to the item.
    Lines without an item reference are skipped.
    """
    priced: List[dict] = []
    subtotal = margin_total = tax_total = 0.0

    for line in lines:
        if not line.itemId:
            continue
        item = items.get(line.itemId)
        if item is None:
            raise ValidationError(f"Item {line.itemId} was not found")

        quantity = float(line.quantity)
        rate = float(item.unitPrice)
        margin_percent = float(line.marginPercent if line.marginPercent is not None else item.marginPercent)
        tax_percent = float(line.taxPercent if line.taxPercent is not None else item.taxPercent)
        margin_amount = rate * margin_percent / 100
        tax_amount = rate * tax_percent / 100

        priced.append(
            {
                "item_id": item.id,
                "description": item.description,
                "quantity": quantity,
                "rate": rate,
                "margin_percent": margin_percent,
                "tax_percent": tax_percent,
                "line_total": round((rate + margin_amount + tax_amount) * quantity, 2),
            }
        )
        subtotal += rate * quantity
        margin_total += margin_amount * quantity
        tax_total += tax_amount * quantity

    totals = {
        "subtotal": round(subtotal, 2),
        "margin_total": round(margin_total, 2),
        "tax_total": round(tax_total, 2),
        "grand_total": round(subtotal + margin_total + tax_total, 2),
    }
    return priced, totals


async def list_quotations(db: Database) -> List[Quotation]:
    rows = await db.fetch(QUOTATION_SELECT + " ORDER BY q.created_at DESC")
    return [_quotation_from_row(r) for r in rows]


async def get_quotation(db: Database, quotation_id: str) -> Quotation:
    row = await db.fetchrow(QUOTATION_SELECT + " WHERE q.id = %s", [quotation_id])
    if not row:
        raise NotFound(f"Quotation {quotation_id} was not found")
    return _quotation_from_row(row)


async def create_quotation(db: Database, payload: QuotationCreate) -> Quotation:
    """Create a DRAFT quotation together with its empty initial version."""
    quotation_id = str(uuid.uuid4())
    async with db.transaction() as tx:
        await tx.execute(
            """
            INSERT INTO quotations (id, client_id, title, status)
            VALUES (%s, %s, %s, %s)
            """,
            [quotation_id, payload.clientId, payload.title.strip(), QuotationStatus.DRAFT.value],
        )
        await tx.execute(
            INSERT_VERSION,
            {
                "id": str(uuid.uuid4()),
                "quotation_id": quotation_id,
                "version": INITIAL_VERSION,
                "brand": None,
                "is_final": False,
                "subtotal": 0,
                "margin_total": 0,
                "tax_total": 0,
                "grand_total": 0,
            },
        )
        row = await tx.fetchrow(QUOTATION_SELECT + " WHERE q.id = %s", [quotation_id])
    return _quotation_from_row(row)


async def update_quotation(db: Database, quotation_id: str, payload: QuotationUpdate) -> Quotation:
    updated = await db.execute(
        """
        UPDATE quotations SET
          title = COALESCE(%(title)s, title),
          status = COALESCE(%(status)s, status),
          updated_at = now()
        WHERE id = %(id)s
        """,
        {
            "id": quotation_id,
            "title": payload.title.strip() if payload.title else None,
            "status": payload.status.value if payload.status else None,
        },
    )
    if not updated:
        raise NotFound(f"Quotation {quotation_id} was not found")
    return await get_quotation(db, quotation_id)


async def add_version(db: Database, quotation_id: str, payload: QuotationVersionCreate) -> QuotationVersion:
    item_ids = sorted({line.itemId for line in payload.items if line.itemId})
    items: Dict[str, Item] = {}
    if item_ids:
        rows = await db.fetch("SELECT * FROM items WHERE id = ANY(%s)", [item_ids])
        items = {r["id"]: _item_from_row(r) for r in rows}

    priced, totals = price_lines(payload.items, items)
    version_id = str(uuid.uuid4())

    async with db.transaction() as tx:
        if not await tx.fetchrow(LOCK_QUOTATION, [quotation_id]):
            raise NotFound(f"Quotation {quotation_id} was not found")
        saved = await tx.fetchrow(
            INSERT_VERSION,
            {
                "id": version_id,
                "quotation_id": quotation_id,
                "version": payload.version.strip(),
                "brand": payload.brand,
                "is_final": payload.isFinal,
                **totals,
            },
        )
        lines = []
        for line in priced:
            line_row = {"id": str(uuid.uuid4()), "quotation_version_id": version_id, **line}
            await tx.execute(INSERT_LINE, line_row)
            lines.append(line_row)

    saved["items"] = lines
    return _version_from_row(saved)


async def delete_quotation(db: Database, quotation_id: str):
    """
    Delete a quotation with all of its versions and their line items.

    Children go first (items, then versions, then the quotation) so foreign
    keys hold at every step; the transaction makes the whole delete atomic.
    """
    async with db.transaction() as tx:
        if not await tx.fetchrow(LOCK_QUOTATION, [quotation_id]):
            raise NotFound(f"Quotation {quotation_id} was not found")

        version_ids = [r["id"] for r in await tx.fetch(SELECT_VERSION_IDS, [quotation_id])]
        item_count = 0
        if version_ids:
            item_count = await tx.execute(DELETE_VERSION_ITEMS, [version_ids])
            await tx.execute(DELETE_VERSIONS, [version_ids])
        await tx.execute(DELETE_QUOTATION, [quotation_id])

    log.info(
        "Deleted quotation %s with %d versions and %d items",
        quotation_id,
        len(version_ids),
        item_count,
    )
