"""
Tienda Services: Boleta Service
=================================

What:  Receipt creation and lookups, shared by the Receipts service
       (/boletas) and the read-only Receipt-detail service (/detalle).

Receipt payload normalization (POST /boletas):
    comprador   object, or JSON text of an object; needs nombre and correo
    productos   list, or JSON text of a list; must not be empty
    fecha       ISO 8601 text or epoch milliseconds; defaults to now (UTC)
    total       number or numeric text; defaults to 0
    user_id     number or numeric text; anything else is stored as null,
                a number beyond INT32 is a 400

Purchase numbers:
    Both services take numero_compra from the shared seq_numero_compra
    sequence. On dialects without sequences (SQLite) the next number is
    max(numero_compra) + 1 inside the request's transaction.

Lookup keys:
    Path parameters are coerced with tienda.coercion.lookup_key. A key that
    is not an integer, or does not fit the column (INT64 for numero_compra,
    INT32 for user_id), is compared with the column's text form, so
    /boletas/numero/abc or /boletas/numero/1e1000000 is a plain 404 instead
    of a database error.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from sqlalchemy import String, cast, delete, func, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tienda.coercion import (
    INT32,
    INT64,
    OutOfRangeError,
    from_json_text,
    is_blank,
    lookup_key,
    to_decimal,
    to_int,
    to_timestamp,
    utcnow,
)
from tienda.database import PURCHASE_NUMBER_SEQUENCE
from tienda.exceptions import (
    DatabaseError,
    NotFoundError,
    ValidationError,
    translate_db_error,
)
from tienda.models.boleta import Boleta
from tienda.schemas.boleta import BoletaResponse

logger = logging.getLogger(__name__)


def _key_filter(column, raw: str, bounds: Tuple[int, int] = INT32):
    key: Union[int, str] = lookup_key(raw, bounds)
    if isinstance(key, int):
        return column == key
    return cast(column, String) == key


def _parse_embedded(value: Any, field: str) -> Any:
    try:
        return from_json_text(value)
    # ValueError also covers integer literals past the interpreter's digit limit
    except ValueError as e:
        raise ValidationError(message=f"{field} debe ser JSON válido", field=field) from e


def _optional_user_id(value: Any) -> Optional[int]:
    if is_blank(value):
        return None
    try:
        return to_int(value) or None
    except OutOfRangeError as e:
        raise ValidationError(message=f"user_id {e}", field="user_id") from e
    except ValueError:
        return None


def normalize_receipt(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate a raw POST /boletas payload into column values (without
    numero_compra).

    Raises:
        ValidationError with the message of the first failing rule.
    """
    comprador = _parse_embedded(payload.get("comprador"), "comprador")
    productos = _parse_embedded(payload.get("productos"), "productos")

    if not isinstance(productos, list) or len(productos) == 0:
        raise ValidationError(message="Productos requeridos (array no vacío)", field="productos")
    if (
        not isinstance(comprador, dict)
        or not comprador.get("nombre")
        or not comprador.get("correo")
    ):
        raise ValidationError(
            message="Datos del comprador requeridos (nombre y correo)",
            field="comprador",
        )

    fecha = payload.get("fecha")
    try:
        fecha_value = utcnow() if is_blank(fecha) else to_timestamp(fecha)
    except ValueError as e:
        raise ValidationError(message=f"fecha {e}", field="fecha") from e

    total = payload.get("total")
    try:
        total_value = 0 if is_blank(total) else to_decimal(total)
    except ValueError as e:
        raise ValidationError(message=f"total {e}", field="total") from e

    return {
        "fecha": fecha_value,
        "comprador": comprador,
        "productos": productos,
        "total": total_value,
        "user_id": _optional_user_id(payload.get("user_id")),
    }


class BoletaService:
    """Business logic for receipts; stateless, one instance per process."""

    async def next_purchase_number(self, db: AsyncSession) -> int:
        if db.get_bind().dialect.supports_sequences:
            return int(await db.scalar(select(PURCHASE_NUMBER_SEQUENCE.next_value())))
        current = await db.scalar(select(func.coalesce(func.max(Boleta.numero_compra), 0)))
        return int(current) + 1

    async def create_receipt(self, db: AsyncSession, payload: Mapping[str, Any]) -> BoletaResponse:
        values = normalize_receipt(payload)
        try:
            values["numero_compra"] = await self.next_purchase_number(db)
            boleta = Boleta(**values)
            db.add(boleta)
            await db.flush()
        except DBAPIError as e:
            logger.error("Database error creating receipt: %s", str(e))
            raise translate_db_error(
                e,
                conflict_message="Número de compra duplicado",
                context={"operation": "create_receipt"},
            ) from e

        logger.info(
            "Receipt created: numero_compra=%s user_id=%s items=%d",
            boleta.numero_compra,
            boleta.user_id,
            len(values["productos"]),
        )
        return BoletaResponse.model_validate(boleta)

    async def get_by_purchase_number(self, db: AsyncSession, numero: str) -> BoletaResponse:
        rows = await self._fetch(
            db, _key_filter(Boleta.numero_compra, numero, INT64), "get_by_purchase_number"
        )
        if not rows:
            raise NotFoundError(resource="boleta", resource_id=numero, message="Boleta no encontrada")
        return rows[0]

    async def list_by_user(self, db: AsyncSession, user_id: str) -> List[BoletaResponse]:
        return await self._fetch(db, _key_filter(Boleta.user_id, user_id), "list_by_user")

    async def list_all(self, db: AsyncSession) -> List[BoletaResponse]:
        return await self._fetch(db, None, "list_all")

    async def delete_by_user(self, db: AsyncSession, user_id: str) -> int:
        """Delete every receipt of a user; returns the number of rows removed."""
        try:
            result = await db.execute(
                delete(Boleta)
                .where(_key_filter(Boleta.user_id, user_id))
                .execution_options(synchronize_session=False)
            )
        except SQLAlchemyError as e:
            logger.error("Database error deleting receipts of user %s: %s", user_id, str(e))
            raise DatabaseError(context={"operation": "delete_by_user"}) from e
        logger.info("Deleted %s receipt(s) of user %s", result.rowcount, user_id)
        return result.rowcount

    async def _fetch(self, db: AsyncSession, condition, operation: str) -> List[BoletaResponse]:
        query = select(Boleta).order_by(Boleta.fecha.desc(), Boleta.id.desc())
        if condition is not None:
            query = query.where(condition)
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error in %s: %s", operation, str(e))
            raise DatabaseError(context={"operation": operation}) from e
        return [BoletaResponse.model_validate(b) for b in result.scalars().all()]


# ── Singleton Instance ────────────────────────────────────────────────────
boleta_service = BoletaService()
