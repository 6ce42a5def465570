"""
Tienda Services: Usuario SQLAlchemy Model
===========================================

What:  ORM model for the `usuario` table (Users service).
Who:   Used by UsuarioService for registration, login and lookups.

Column notes:
    - correo: UNIQUE. The store enforces email uniqueness; a duplicate insert
      surfaces as a unique violation that the service maps to 409.
    - password: bcrypt hash for users registered by this code base; rows
      created by earlier deployments may still hold plaintext and are
      upgraded on their next successful login.
    - historial: purchase history as a JSON array (JSONB on PostgreSQL).
"""

from datetime import date
from typing import Any, List, Optional

from sqlalchemy import JSON, Date, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from tienda.database import Base

# JSON everywhere, JSONB on PostgreSQL
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class Usuario(Base):
    __tablename__ = "usuario"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    run: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    nombre: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    apellidos: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    correo: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(200), nullable=False)
    fecha_nacimiento: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    tipo_usuario: Mapped[str] = mapped_column(
        String(50),
        nullable=True,
        default="cliente",
        server_default=text("'cliente'"),
    )
    direccion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    comuna: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    departamento: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    indicacion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    historial: Mapped[List[Any]] = mapped_column(
        JSONDocument,
        nullable=True,
        default=list,
        server_default=text("'[]'"),
    )

    def __repr__(self) -> str:
        return f"<Usuario(id={self.id}, correo='{self.correo}')>"
