"""
Tienda Services: Boletas Routes
=================================

What:  Receipts service endpoints.

    GET    /boletas                  all receipts, newest first
    GET    /boletas/numero/{numero}  one receipt by purchase number
    GET    /boletas/{user_id}        receipts of one user, newest first
    POST   /boletas                  create a receipt
    DELETE /boletas/{user_id}        delete every receipt of a user

Path keys are strings on purpose: integral keys that fit the column are
matched as numbers, anything else matches nothing instead of failing.
"""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tienda.database import get_db_session
from tienda.routes.payload import body_docs, read_payload
from tienda.schemas.boleta import BoletaCreate, BoletaResponse
from tienda.schemas.common import ErrorResponse, OkResponse
from tienda.services.boleta_service import boleta_service

router = APIRouter(prefix="/boletas", tags=["Boletas"])


@router.get("", response_model=List[BoletaResponse], summary="List receipts")
async def list_receipts(db: AsyncSession = Depends(get_db_session)) -> List[BoletaResponse]:
    return await boleta_service.list_all(db)


@router.get(
    "/numero/{numero}",
    response_model=BoletaResponse,
    responses={404: {"description": "Boleta no encontrada", "model": ErrorResponse}},
    summary="Get a receipt by purchase number",
)
async def get_by_purchase_number(
    numero: str,
    db: AsyncSession = Depends(get_db_session),
) -> BoletaResponse:
    return await boleta_service.get_by_purchase_number(db, numero)


@router.get(
    "/{user_id}",
    response_model=List[BoletaResponse],
    summary="List the receipts of a user",
)
async def list_by_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> List[BoletaResponse]:
    return await boleta_service.list_by_user(db, user_id)


@router.post(
    "",
    status_code=201,
    response_model=BoletaResponse,
    responses={400: {"description": "Invalid receipt data", "model": ErrorResponse}},
    summary="Create a receipt",
    openapi_extra=body_docs(BoletaCreate),
)
async def create_receipt(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> BoletaResponse:
    # a receipt has no file part; comprador and productos may arrive as JSON text
    fields, _ = await read_payload(request)
    return await boleta_service.create_receipt(db, fields)


@router.delete("/{user_id}", response_model=OkResponse, summary="Delete the receipts of a user")
async def delete_by_user(
    user_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> OkResponse:
    await boleta_service.delete_by_user(db, user_id)
    return OkResponse()
