"""
Tienda Services: Producto Service
===================================

What:  Product CRUD for the Products service, including image uploads.
How:   Raw request fields are validated into ProductoCreate / ProductoPatch
       (see tienda.schemas.producto for the coercion rules). An uploaded
       `imagen` file is stored first and wins over an `imagen` URL.

Upload cleanup:
    If the database write fails after an image was stored, the file is
    removed again so failed requests leave nothing behind in UPLOAD_DIR.
"""

import logging
from typing import Any, List, Mapping, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from tienda.exceptions import (
    DatabaseError,
    NotFoundError,
    ValidationError,
    translate_db_error,
)
from tienda.models.producto import Producto
from tienda.schemas import validate_fields
from tienda.schemas.producto import ProductoCreate, ProductoPatch, ProductoResponse
from tienda.services.file_service import FileService

logger = logging.getLogger(__name__)


def _not_found(producto_id: int) -> NotFoundError:
    return NotFoundError(resource="producto", resource_id=str(producto_id), message="No encontrado")


class ProductoService:
    """Business logic for products; stateless, one instance per process."""

    async def list_products(self, db: AsyncSession) -> List[ProductoResponse]:
        return await self._select(db, select(Producto).order_by(Producto.id))

    async def list_by_category(self, db: AsyncSession, categoria: str) -> List[ProductoResponse]:
        query = select(Producto).where(Producto.categoria == categoria).order_by(Producto.id)
        return await self._select(db, query)

    async def get_product(self, db: AsyncSession, producto_id: int) -> ProductoResponse:
        try:
            producto = await db.get(Producto, producto_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching product %s: %s", producto_id, str(e))
            raise DatabaseError(context={"operation": "get_product"}) from e
        if producto is None:
            raise _not_found(producto_id)
        return ProductoResponse.model_validate(producto)

    async def create_product(
        self,
        db: AsyncSession,
        files: FileService,
        fields: Mapping[str, Any],
        imagen: Optional[UploadFile] = None,
    ) -> ProductoResponse:
        data = validate_fields(ProductoCreate, fields)
        values = data.column_values()

        stored_url = None
        if imagen is not None:
            stored_url = await files.store_upload(imagen)
            values["imagen_url"] = stored_url

        producto = Producto(**values)
        db.add(producto)
        try:
            await db.flush()
        except DBAPIError as e:
            await files.cleanup(stored_url)
            raise translate_db_error(e, context={"operation": "create_product"}) from e

        logger.info("Product created: id=%s", producto.id)
        return ProductoResponse.model_validate(producto)

    async def update_product(
        self,
        db: AsyncSession,
        files: FileService,
        producto_id: int,
        fields: Mapping[str, Any],
        imagen: Optional[UploadFile] = None,
    ) -> ProductoResponse:
        values = validate_fields(ProductoPatch, fields).column_values()
        if not values and imagen is None:
            raise ValidationError(message="No hay campos para actualizar")

        try:
            producto = await db.get(Producto, producto_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching product %s: %s", producto_id, str(e))
            raise DatabaseError(context={"operation": "update_product"}) from e
        if producto is None:
            raise _not_found(producto_id)

        stored_url = None
        if imagen is not None:
            stored_url = await files.store_upload(imagen)
            values["imagen_url"] = stored_url

        for column, value in values.items():
            setattr(producto, column, value)
        try:
            await db.flush()
        except DBAPIError as e:
            await files.cleanup(stored_url)
            raise translate_db_error(e, context={"operation": "update_product"}) from e

        logger.info("Product updated: id=%s fields=%s", producto_id, sorted(values))
        return ProductoResponse.model_validate(producto)

    async def delete_product(self, db: AsyncSession, producto_id: int) -> None:
        """Unconditional delete; succeeds whether or not the row existed."""
        try:
            await db.execute(delete(Producto).where(Producto.id == producto_id))
        except SQLAlchemyError as e:
            logger.error("Database error deleting product %s: %s", producto_id, str(e))
            raise DatabaseError(context={"operation": "delete_product"}) from e
        logger.info("Product deleted: id=%s", producto_id)

    async def _select(self, db: AsyncSession, query) -> List[ProductoResponse]:
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing products: %s", str(e))
            raise DatabaseError(context={"operation": "list_products"}) from e
        return [ProductoResponse.model_validate(p) for p in result.scalars().all()]


# ── Singleton Instance ────────────────────────────────────────────────────
producto_service = ProductoService()
