import uuid
from typing import List, Optional

from ..core.database import Database
from ..core.errors import NotFound
from ..models.client import Client, ClientPayload

CLIENT_COLUMNS = ("name", "contact_name", "email", "phone", "address", "city", "state", "country", "tax_id", "notes")


def _client_from_row(row: Optional[dict]) -> Optional[Client]:
    if not row:
        return None
    return Client(
        id=row["id"],
        name=row.get("name") or "",
        contactName=row.get("contact_name"),
        email=row.get("email"),
        phone=row.get("phone"),
        address=row.get("address"),
        city=row.get("city"),
        state=row.get("state"),
        country=row.get("country"),
        taxId=row.get("tax_id"),
        notes=row.get("notes"),
        createdAt=row.get("created_at"),
        updatedAt=row.get("updated_at"),
    )


def _to_db_row(payload: ClientPayload) -> dict:
    return {
        "name": payload.name.strip(),
        "contact_name": payload.contactName,
        "email": payload.email,
        "phone": payload.phone,
        "address": payload.address,
        "city": payload.city,
        "state": payload.state,
        "country": payload.country,
        "tax_id": payload.taxId,
        "notes": payload.notes,
    }


async def list_clients(db: Database) -> List[Client]:
    rows = await db.fetch("SELECT * FROM clients ORDER BY name ASC")
    return [_client_from_row(r) for r in rows]


async def get_client(db: Database, client_id: str) -> Client:
    row = await db.fetchrow("SELECT * FROM clients WHERE id = %s", [client_id])
    if not row:
        raise NotFound(f"Client {client_id} was not found")
    return _client_from_row(row)


async def create_client(db: Database, payload: ClientPayload) -> Client:
    row = _to_db_row(payload)
    row["id"] = str(uuid.uuid4())
    saved = await db.fetchrow(
        """
        INSERT INTO clients (id, name, contact_name, email, phone, address, city, state, country, tax_id, notes)
        VALUES (
          %(id)s, %(name)s, %(contact_name)s, %(email)s, %(phone)s, %(address)s,
          %(city)s, %(state)s, %(country)s, %(tax_id)s, %(notes)s
        )
        RETURNING *
        """,
        row,
    )
    return _client_from_row(saved)


async def update_client(db: Database, client_id: str, payload: ClientPayload) -> Client:
    row = _to_db_row(payload)
    row["id"] = client_id
    assignments = ", ".join(f"{col} = %({col})s" for col in CLIENT_COLUMNS)
    saved = await db.fetchrow(
        f"UPDATE clients SET {assignments}, updated_at = now() WHERE id = %(id)s RETURNING *",
        row,
    )
    if not saved:
        raise NotFound(f"Client {client_id} was not found")
    return _client_from_row(saved)


async def delete_client(db: Database, client_id: str):
    # Clients still referenced by inquiries, quotations or tokens fail with ConstraintViolation
    deleted = await db.execute("DELETE FROM clients WHERE id = %s", [client_id])
    if not deleted:
        raise NotFound(f"Client {client_id} was not found")
