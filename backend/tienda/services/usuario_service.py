"""
Tienda Services: Usuario Service
==================================

What:  Registration, login and lookups for the Users service.
How:   Stateless; every method receives the request's AsyncSession.

Login failure handling:
    Unknown email, wrong password and missing fields all end in the same
    AuthenticationError("Credenciales inválidas"), and each path spends one
    bcrypt check so timing does not reveal which one happened.

    bcrypt is CPU bound, so every hash and check runs in the threadpool and
    other requests keep being served while a login is verified.
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from tienda.exceptions import (
    AuthenticationError,
    DatabaseError,
    NotFoundError,
    ValidationError,
    translate_db_error,
)
from tienda.models.usuario import Usuario
from tienda.schemas.usuario import (
    LoginResponse,
    RegisterResponse,
    UsuarioLogin,
    UsuarioRegister,
    UsuarioResponse,
)
from tienda.security import (
    burn_password_check,
    create_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)


class UsuarioService:
    """
    Business logic for user accounts.

    Responsibilities:
        - register(): create a user with a hashed password
        - login(): verify credentials and issue a bearer token
        - list_users() / get_user(): token-protected lookups
    """

    async def register(self, db: AsyncSession, payload: UsuarioRegister) -> RegisterResponse:
        if not payload.correo or not payload.password:
            raise ValidationError(message="Correo y password requeridos")

        usuario = Usuario(
            run=payload.run,
            nombre=payload.nombre,
            apellidos=payload.apellidos,
            correo=payload.correo,
            password=await run_in_threadpool(hash_password, payload.password),
            fecha_nacimiento=payload.fecha_nacimiento,
            tipo_usuario=payload.tipo_usuario or "cliente",
            direccion=payload.direccion,
            region=payload.region,
            comuna=payload.comuna,
            departamento=payload.departamento,
            indicacion=payload.indicacion,
            historial=[],
        )
        db.add(usuario)
        try:
            await db.flush()
        except DBAPIError as e:
            raise translate_db_error(
                e,
                conflict_message="Usuario ya existe",
                context={"operation": "register"},
            ) from e

        logger.info("User registered: id=%s", usuario.id)
        return RegisterResponse(user=UsuarioResponse.model_validate(usuario))

    async def login(self, db: AsyncSession, payload: UsuarioLogin) -> LoginResponse:
        if not payload.correo or not payload.password:
            await run_in_threadpool(burn_password_check)
            raise AuthenticationError()

        try:
            result = await db.execute(select(Usuario).where(Usuario.correo == payload.correo))
            usuario = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise DatabaseError(context={"operation": "login"}) from e

        if usuario is None:
            await run_in_threadpool(burn_password_check)
            raise AuthenticationError()

        matches, needs_rehash = await run_in_threadpool(
            verify_password, payload.password, usuario.password
        )
        if not matches:
            logger.info("Failed login for user id=%s", usuario.id)
            raise AuthenticationError()

        if needs_rehash:
            usuario.password = await run_in_threadpool(hash_password, payload.password)
            await db.flush()
            logger.info("Upgraded plaintext password to bcrypt for user id=%s", usuario.id)

        return LoginResponse(
            token=create_access_token(usuario.correo),
            user=UsuarioResponse.model_validate(usuario),
        )

    async def list_users(self, db: AsyncSession) -> List[UsuarioResponse]:
        try:
            result = await db.execute(select(Usuario).order_by(Usuario.id))
        except SQLAlchemyError as e:
            logger.error("Database error listing users: %s", str(e))
            raise DatabaseError(context={"operation": "list_users"}) from e
        return [UsuarioResponse.model_validate(u) for u in result.scalars().all()]

    async def get_user(self, db: AsyncSession, usuario_id: int) -> UsuarioResponse:
        try:
            usuario = await db.get(Usuario, usuario_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", usuario_id, str(e))
            raise DatabaseError(context={"operation": "get_user"}) from e

        if usuario is None:
            raise NotFoundError(
                resource="usuario",
                resource_id=str(usuario_id),
                message="Usuario no encontrado",
            )
        return UsuarioResponse.model_validate(usuario)


# ── Singleton Instance ────────────────────────────────────────────────────
usuario_service = UsuarioService()
