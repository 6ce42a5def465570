"""
Tienda Services: Categorias Routes
====================================

What:  Categories service endpoints.

    GET    /categorias          [{id, nombre}] sorted by name
    GET    /categorias/nombres  ["nombre", ...] sorted
    POST   /categorias          create
    POST   /categorias/seed     insert the default names (idempotent)
    PUT    /categorias/{id}     rename
    DELETE /categorias/{id}     delete, clearing the name from products
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tienda.database import get_db_session
from tienda.routes.payload import RowId
from tienda.schemas.categoria import CategoriaIn, CategoriaResponse, SeedResponse
from tienda.schemas.common import ErrorResponse, OkResponse
from tienda.services.categoria_service import categoria_service

router = APIRouter(prefix="/categorias", tags=["Categorias"])

_NOT_FOUND = {404: {"description": "Categoría no encontrada", "model": ErrorResponse}}


@router.get("", response_model=List[CategoriaResponse], summary="List categories")
async def list_categories(db: AsyncSession = Depends(get_db_session)) -> List[CategoriaResponse]:
    return await categoria_service.list_categories(db)


@router.get("/nombres", response_model=List[str], summary="List category names")
async def list_names(db: AsyncSession = Depends(get_db_session)) -> List[str]:
    return await categoria_service.list_names(db)


@router.post(
    "",
    status_code=201,
    response_model=CategoriaResponse,
    responses={
        400: {"description": "Nombre de categoría requerido", "model": ErrorResponse},
        409: {"description": "Categoría ya existe", "model": ErrorResponse},
    },
    summary="Create a category",
)
async def create_category(
    payload: CategoriaIn,
    db: AsyncSession = Depends(get_db_session),
) -> CategoriaResponse:
    return await categoria_service.create_category(db, payload.nombre)


@router.post(
    "/seed",
    response_model=SeedResponse,
    summary="Insert the default categories",
    description="Inserts DEFAULT_CATEGORIES, skipping names that already exist.",
)
async def seed_defaults(db: AsyncSession = Depends(get_db_session)) -> SeedResponse:
    return await categoria_service.seed_defaults(db)


@router.put(
    "/{categoria_id}",
    response_model=CategoriaResponse,
    responses={
        **_NOT_FOUND,
        400: {"description": "Nombre de categoría requerido", "model": ErrorResponse},
        409: {"description": "Ya existe otra categoría con ese nombre", "model": ErrorResponse},
    },
    summary="Rename a category",
)
async def update_category(
    categoria_id: RowId,
    payload: CategoriaIn,
    db: AsyncSession = Depends(get_db_session),
) -> CategoriaResponse:
    return await categoria_service.update_category(db, categoria_id, payload.nombre)


@router.delete(
    "/{categoria_id}",
    response_model=OkResponse,
    responses=_NOT_FOUND,
    summary="Delete a category",
    description=(
        "Clears the category from every product that uses it, then deletes it. "
        "CATEGORY_CLEANUP_POLICY decides what happens when clearing fails."
    ),
)
async def delete_category(
    categoria_id: RowId,
    db: AsyncSession = Depends(get_db_session),
) -> OkResponse:
    await categoria_service.delete_category(db, categoria_id)
    return OkResponse()
