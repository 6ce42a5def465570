"""
Tienda Services: Categoria Service
====================================

What:  Category CRUD and default seeding for the Categories service.

Category delete:
    producto.categoria holds the category *name*, not a foreign key, so
    deleting a category runs three steps in the request's transaction:

        1. look up the name (404 when the id does not exist)
        2. UPDATE producto SET categoria = NULL WHERE categoria = <name>,
           inside a savepoint
        3. DELETE the category row

    When step 2 fails (e.g. the producto table does not exist in this
    database) CATEGORY_CLEANUP_POLICY decides: "proceed" rolls back to the
    savepoint, logs a warning and still deletes the category; "abort" fails
    the request and leaves the category in place.

Seeding:
    Default names are inserted with ON CONFLICT (nombre) DO NOTHING, so
    seeding is idempotent and never reports a duplicate.
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tienda.config import settings
from tienda.exceptions import (
    DatabaseError,
    NotFoundError,
    ValidationError,
    translate_db_error,
)
from tienda.models.categoria import Categoria
from tienda.models.producto import Producto
from tienda.schemas.categoria import CategoriaResponse, SeedResponse

logger = logging.getLogger(__name__)

# Dialect-specific INSERT constructs that support ON CONFLICT DO NOTHING
INSERT_IGNORE: Dict[str, Callable] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _clean_name(nombre: Optional[str]) -> str:
    cleaned = (nombre or "").strip()
    if not cleaned:
        raise ValidationError(message="Nombre de categoría requerido", field="nombre")
    return cleaned


def _not_found(categoria_id: int) -> NotFoundError:
    return NotFoundError(
        resource="categoria",
        resource_id=str(categoria_id),
        message="Categoría no encontrada",
    )


class CategoriaService:
    """Business logic for categories; stateless, one instance per process."""

    async def list_categories(self, db: AsyncSession) -> List[CategoriaResponse]:
        result = await self._execute(db, select(Categoria).order_by(Categoria.nombre))
        return [CategoriaResponse.model_validate(c) for c in result.scalars().all()]

    async def list_names(self, db: AsyncSession) -> List[str]:
        result = await self._execute(db, select(Categoria.nombre).order_by(Categoria.nombre))
        return list(result.scalars().all())

    async def create_category(self, db: AsyncSession, nombre: Optional[str]) -> CategoriaResponse:
        categoria = Categoria(nombre=_clean_name(nombre))
        db.add(categoria)
        try:
            await db.flush()
        except DBAPIError as e:
            raise translate_db_error(
                e,
                conflict_message="Categoría ya existe",
                context={"operation": "create_category"},
            ) from e

        logger.info("Category created: id=%s nombre=%r", categoria.id, categoria.nombre)
        return CategoriaResponse.model_validate(categoria)

    async def seed_defaults(
        self,
        db: AsyncSession,
        names: Optional[Iterable[str]] = None,
    ) -> SeedResponse:
        names = list(names if names is not None else settings.default_category_names)
        dialect = db.get_bind().dialect.name
        insert_ignore = INSERT_IGNORE.get(dialect)

        try:
            if insert_ignore is not None:
                for nombre in names:
                    stmt = insert_ignore(Categoria).values(nombre=nombre)
                    await db.execute(stmt.on_conflict_do_nothing(index_elements=["nombre"]))
            else:
                existing = set(await self.list_names(db))
                db.add_all(Categoria(nombre=n) for n in names if n not in existing)
                await db.flush()
        except DBAPIError as e:
            raise translate_db_error(e, context={"operation": "seed_defaults"}) from e

        categorias = await self.list_names(db)
        logger.info("Default categories seeded (%d total)", len(categorias))
        return SeedResponse(categorias=categorias)

    async def update_category(
        self,
        db: AsyncSession,
        categoria_id: int,
        nombre: Optional[str],
    ) -> CategoriaResponse:
        cleaned = _clean_name(nombre)
        categoria = await self._get(db, categoria_id)

        categoria.nombre = cleaned
        try:
            await db.flush()
        except DBAPIError as e:
            raise translate_db_error(
                e,
                conflict_message="Ya existe otra categoría con ese nombre",
                context={"operation": "update_category", "id": categoria_id},
            ) from e

        logger.info("Category renamed: id=%s nombre=%r", categoria_id, cleaned)
        return CategoriaResponse.model_validate(categoria)

    async def delete_category(
        self,
        db: AsyncSession,
        categoria_id: int,
        cleanup_policy: Optional[str] = None,
    ) -> None:
        policy = cleanup_policy or settings.category_cleanup_policy
        categoria = await self._get(db, categoria_id)
        nombre = categoria.nombre

        try:
            async with db.begin_nested():
                result = await db.execute(
                    update(Producto)
                    .where(Producto.categoria == nombre)
                    .values(categoria=None)
                    .execution_options(synchronize_session=False)
                )
            logger.info("Cleared category %r from %s product(s)", nombre, result.rowcount)
        except SQLAlchemyError as e:
            if policy == "abort":
                logger.error("Product cleanup for category %r failed; delete aborted: %s", nombre, str(e))
                if isinstance(e, DBAPIError):
                    raise translate_db_error(e, context={"operation": "delete_category"}) from e
                raise DatabaseError(context={"operation": "delete_category"}) from e
            logger.warning("Product cleanup for category %r failed; deleting anyway: %s", nombre, str(e))

        try:
            await db.execute(delete(Categoria).where(Categoria.id == categoria_id))
        except DBAPIError as e:
            raise translate_db_error(e, context={"operation": "delete_category"}) from e
        logger.info("Category deleted: id=%s nombre=%r", categoria_id, nombre)

    async def _get(self, db: AsyncSession, categoria_id: int) -> Categoria:
        try:
            categoria = await db.get(Categoria, categoria_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching category %s: %s", categoria_id, str(e))
            raise DatabaseError(context={"operation": "get_category"}) from e
        if categoria is None:
            raise _not_found(categoria_id)
        return categoria

    async def _execute(self, db: AsyncSession, query):
        try:
            return await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing categories: %s", str(e))
            raise DatabaseError(context={"operation": "list_categories"}) from e


# ── Singleton Instance ────────────────────────────────────────────────────
categoria_service = CategoriaService()
