"""
Tienda Services: Usuarios Routes
==================================

What:  Users service endpoints.

    POST /usuarios/register   create an account            (public)
    POST /usuarios/login      exchange credentials → token (public)
    GET  /usuarios            list users                   (bearer token)
    GET  /usuarios/{id}       one user                     (bearer token)

Any valid token authorizes the listing routes; tokens carry no roles.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tienda.database import get_db_session
from tienda.routes.payload import RowId
from tienda.schemas.common import ErrorResponse
from tienda.schemas.usuario import (
    LoginResponse,
    RegisterResponse,
    UsuarioLogin,
    UsuarioRegister,
    UsuarioResponse,
)
from tienda.security import require_token
from tienda.services.usuario_service import usuario_service

router = APIRouter(prefix="/usuarios", tags=["Usuarios"])

_PROTECTED = {
    401: {"description": "Token inválido", "model": ErrorResponse},
    403: {"description": "Token requerido", "model": ErrorResponse},
}


@router.post(
    "/register",
    status_code=201,
    response_model=RegisterResponse,
    responses={
        400: {"description": "Correo y password requeridos", "model": ErrorResponse},
        409: {"description": "Usuario ya existe", "model": ErrorResponse},
    },
    summary="Register a user",
)
async def register(
    payload: UsuarioRegister,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    return await usuario_service.register(db, payload)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={401: {"description": "Credenciales inválidas", "model": ErrorResponse}},
    summary="Log in and receive a bearer token",
    description="Returns an HS256 JWT valid for JWT_EXPIRE_HOURS (8 by default).",
)
async def login(
    payload: UsuarioLogin,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await usuario_service.login(db, payload)


@router.get(
    "",
    response_model=List[UsuarioResponse],
    responses=_PROTECTED,
    summary="List users",
)
async def list_users(
    usuario: str = Depends(require_token),
    db: AsyncSession = Depends(get_db_session),
) -> List[UsuarioResponse]:
    return await usuario_service.list_users(db)


@router.get(
    "/{usuario_id}",
    response_model=UsuarioResponse,
    responses={**_PROTECTED, 404: {"description": "Usuario no encontrado", "model": ErrorResponse}},
    summary="Get one user",
)
async def get_user(
    usuario_id: RowId,
    usuario: str = Depends(require_token),
    db: AsyncSession = Depends(get_db_session),
) -> UsuarioResponse:
    return await usuario_service.get_user(db, usuario_id)
