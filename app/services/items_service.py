import uuid
from typing import List, Optional

from ..core.database import Database
from ..core.errors import NotFound
from ..models.item import Item, ItemPayload


def _item_from_row(row: Optional[dict]) -> Optional[Item]:
    if not row:
        return None
    return Item(
        id=row["id"],
        name=row.get("name") or "",
        description=row.get("description"),
        brand=row.get("brand"),
        unitPrice=float(row.get("unit_price") or 0),
        taxPercent=float(row.get("tax_percent") or 0),
        marginPercent=float(row.get("margin_percent") or 0),
        uom=row.get("uom"),
        category=row.get("category"),
        sku=row.get("sku"),
        isActive=bool(row.get("is_active", True)),
        createdAt=row.get("created_at"),
        updatedAt=row.get("updated_at"),
    )


def _to_db_row(payload: ItemPayload) -> dict:
    return {
        "name": payload.name.strip(),
        "description": payload.description,
        "brand": payload.brand,
        "unit_price": payload.unitPrice,
        "tax_percent": payload.taxPercent,
        "margin_percent": payload.marginPercent,
        "uom": payload.uom,
        "category": payload.category,
        "sku": payload.sku,
        "is_active": payload.isActive,
    }


async def list_items(db: Database) -> List[Item]:
    rows = await db.fetch("SELECT * FROM items ORDER BY name ASC")
    return [_item_from_row(r) for r in rows]


async def create_item(db: Database, payload: ItemPayload) -> Item:
    row = _to_db_row(payload)
    row["id"] = str(uuid.uuid4())
    saved = await db.fetchrow(
        """
        INSERT INTO items (
          id, name, description, brand, unit_price, tax_percent, margin_percent,
          uom, category, sku, is_active
        )
        VALUES (
          %(id)s, %(name)s, %(description)s, %(brand)s, %(unit_price)s, %(tax_percent)s, %(margin_percent)s,
          %(uom)s, %(category)s, %(sku)s, %(is_active)s
        )
        RETURNING *
        """,
        row,
    )
    return _item_from_row(saved)


async def update_item(db: Database, item_id: str, payload: ItemPayload) -> Item:
    row = _to_db_row(payload)
    row["id"] = item_id
    saved = await db.fetchrow(
        """
        UPDATE items SET
          name = %(name)s,
          description = %(description)s,
          brand = %(brand)s,
          unit_price = %(unit_price)s,
          tax_percent = %(tax_percent)s,
          margin_percent = %(margin_percent)s,
          uom = %(uom)s,
          category = %(category)s,
          sku = %(sku)s,
          is_active = %(is_active)s,
          updated_at = now()
        WHERE id = %(id)s
        RETURNING *
        """,
        row,
    )
    if not saved:
        raise NotFound(f"Item {item_id} was not found")
    return _item_from_row(saved)


async def delete_item(db: Database, item_id: str):
    deleted = await db.execute("DELETE FROM items WHERE id = %s", [item_id])
    if not deleted:
        raise NotFound(f"Item {item_id} was not found")
