"""
Tienda Services: Producto SQLAlchemy Model
============================================

What:  ORM model for the `producto` table (Products service).

`categoria` is a denormalized category name, not a foreign key: the
Categories service nulls it on matching rows when a category is deleted.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from tienda.database import Base


class Producto(Base):
    __tablename__ = "producto"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    codigo: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    nombre: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    descripcion: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    categoria: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    precio: Mapped[Decimal] = mapped_column(
        Numeric, nullable=True, default=0, server_default=text("0")
    )
    precio_oferta: Mapped[Optional[Decimal]] = mapped_column(Numeric, nullable=True)
    en_oferta: Mapped[bool] = mapped_column(
        Boolean, nullable=True, default=False, server_default=text("false")
    )
    stock: Mapped[int] = mapped_column(
        Integer, nullable=True, default=0, server_default=text("0")
    )
    stock_critico: Mapped[int] = mapped_column(
        Integer, nullable=True, default=0, server_default=text("0")
    )
    imagen_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # GET /productos/categoria/{cat} and the category-delete cleanup both
    # filter on categoria
    __table_args__ = (Index("idx_producto_categoria", "categoria"),)

    def __repr__(self) -> str:
        return f"<Producto(id={self.id}, nombre='{self.nombre}')>"
