"""
Tienda Services: Usuario Schemas
==================================

What:  Request and response contracts of the Users service.

Registration accepts both naming styles the storefront clients send
(`fechaNacimiento` / `fecha_nacimiento`, `tipoUsuario` / `tipo_usuario`) and
treats empty strings as absent. `correo` and `password` are optional at the
schema level so the service can answer with its own 400 message when either
is missing.

The password column is never part of a response model.
"""

from datetime import date
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, Field, computed_field, field_validator


def _empty_to_none(value: Any) -> Any:
    if isinstance(value, str) and value.strip() == "":
        return None
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class UsuarioRegister(BaseModel):
    """Body of POST /usuarios/register."""

    run: Optional[str] = None
    nombre: Optional[str] = None
    apellidos: Optional[str] = None
    correo: Optional[str] = None
    password: Optional[str] = None
    fecha_nacimiento: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("fechaNacimiento", "fecha_nacimiento"),
        description="Birth date (YYYY-MM-DD)",
    )
    tipo_usuario: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("tipoUsuario", "tipo_usuario"),
        description="User type; 'cliente' when omitted",
    )
    direccion: Optional[str] = None
    region: Optional[str] = None
    comuna: Optional[str] = None
    departamento: Optional[str] = None
    indicacion: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Any:
        return _empty_to_none(v)


class UsuarioLogin(BaseModel):
    """Body of POST /usuarios/login."""

    correo: Optional[str] = None
    password: Optional[str] = None

    model_config = {"extra": "ignore"}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class UsuarioResponse(BaseModel):
    """
    What:  Public representation of a user row.

    `historialCompras` mirrors `historial` under the name the storefront
    reads; both are always lists.
    """
    id: int
    run: Optional[str] = None
    nombre: Optional[str] = None
    apellidos: Optional[str] = None
    correo: str
    fecha_nacimiento: Optional[date] = None
    tipo_usuario: Optional[str] = None
    direccion: Optional[str] = None
    region: Optional[str] = None
    comuna: Optional[str] = None
    departamento: Optional[str] = None
    indicacion: Optional[str] = None
    historial: List[Any] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("historial", mode="before")
    @classmethod
    def historial_default(cls, v: Any) -> Any:
        return [] if v is None else v

    @computed_field  # type: ignore[misc]
    @property
    def historialCompras(self) -> List[Any]:
        return self.historial


class RegisterResponse(BaseModel):
    ok: bool = True
    user: UsuarioResponse


class LoginResponse(BaseModel):
    token: str = Field(description="Bearer token (HS256 JWT) valid for JWT_EXPIRE_HOURS")
    user: UsuarioResponse
