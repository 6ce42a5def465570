"""
Tienda Services: Productos Routes
===================================

What:  Products service endpoints.

    GET    /productos                  all products
    GET    /productos/categoria/{cat}  exact category-name match
    GET    /productos/{id}             one product
    POST   /productos                  create (JSON, urlencoded or multipart)
    PUT    /productos/{id}             partial update (same body forms)
    DELETE /productos/{id}             unconditional delete

Create and update accept an `imagen` file part; the stored file is served
back under /uploads by the static mount the scaffold adds for this service.

Ids are RowId: beyond the INT32 column range they are a 400, not a lookup.
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tienda.database import get_db_session
from tienda.routes.payload import RowId, body_docs, read_payload
from tienda.schemas.common import ErrorResponse, OkResponse
from tienda.schemas.producto import ProductoCreate, ProductoPatch, ProductoResponse
from tienda.services.file_service import FileService
from tienda.services.producto_service import producto_service

router = APIRouter(prefix="/productos", tags=["Productos"])


def get_files(request: Request) -> FileService:
    """FastAPI dependency returning the upload storage attached by the app factory."""
    return request.app.state.files


@router.get("", response_model=List[ProductoResponse], summary="List products")
async def list_products(db: AsyncSession = Depends(get_db_session)) -> List[ProductoResponse]:
    return await producto_service.list_products(db)


@router.get(
    "/categoria/{categoria}",
    response_model=List[ProductoResponse],
    summary="List products of one category",
)
async def list_by_category(
    categoria: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[ProductoResponse]:
    return await producto_service.list_by_category(db, categoria)


@router.get(
    "/{producto_id}",
    response_model=ProductoResponse,
    responses={404: {"description": "No encontrado", "model": ErrorResponse}},
    summary="Get one product",
)
async def get_product(
    producto_id: RowId,
    db: AsyncSession = Depends(get_db_session),
) -> ProductoResponse:
    return await producto_service.get_product(db, producto_id)


@router.post(
    "",
    status_code=201,
    response_model=ProductoResponse,
    responses={400: {"description": "Invalid field or image", "model": ErrorResponse}},
    summary="Create a product",
    openapi_extra=body_docs(ProductoCreate, with_file=True),
)
async def create_product(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    files: FileService = Depends(get_files),
) -> ProductoResponse:
    # imagen is the uploaded file part, or None for JSON and urlencoded bodies
    fields, imagen = await read_payload(request)
    return await producto_service.create_product(db, files, fields, imagen)


@router.put(
    "/{producto_id}",
    response_model=ProductoResponse,
    responses={
        400: {"description": "No hay campos para actualizar", "model": ErrorResponse},
        404: {"description": "No encontrado", "model": ErrorResponse},
    },
    summary="Update a product",
    openapi_extra=body_docs(ProductoPatch, with_file=True),
)
async def update_product(
    producto_id: RowId,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    files: FileService = Depends(get_files),
) -> ProductoResponse:
    fields, imagen = await read_payload(request)
    return await producto_service.update_product(db, files, producto_id, fields, imagen)


@router.delete("/{producto_id}", response_model=OkResponse, summary="Delete a product")
async def delete_product(
    producto_id: RowId,
    db: AsyncSession = Depends(get_db_session),
) -> OkResponse:
    await producto_service.delete_product(db, producto_id)
    return OkResponse()
