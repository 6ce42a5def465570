"""
Tienda Services: Detalle Routes
=================================

What:  Read-only views over the `boleta` table for the receipt-detail page.
How:   Same queries as the Boletas service (BoletaService); this service
       mounts no write routes, so POST/PUT/DELETE here answer 405.
Who:   The storefront's "detalle de boleta" screen.

Endpoints:
    GET /detalle                   every receipt, newest first
    GET /detalle/{numero_compra}   one receipt by purchase number
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tienda.database import get_db_session
from tienda.schemas.boleta import BoletaResponse
from tienda.schemas.common import ErrorResponse
from tienda.services.boleta_service import boleta_service

router = APIRouter(prefix="/detalle", tags=["Detalle"])


@router.get("", response_model=List[BoletaResponse], summary="List receipts, newest first")
async def list_receipts(db: AsyncSession = Depends(get_db_session)) -> List[BoletaResponse]:
    return await boleta_service.list_all(db)


@router.get(
    "/{numero_compra}",
    response_model=BoletaResponse,
    responses={404: {"description": "Boleta no encontrada", "model": ErrorResponse}},
    summary="Get a receipt by purchase number",
)
async def get_by_purchase_number(
    # Kept as text: a key that is not a 64-bit integer matches nothing (404)
    numero_compra: str,
    db: AsyncSession = Depends(get_db_session),
) -> BoletaResponse:
    """
    Look up one receipt.

    Raises: NotFoundError (404) for an unknown number, including keys like
            "abc" or "1e1000000" that can never be a purchase number.
    """
    return await boleta_service.get_by_purchase_number(db, numero_compra)
