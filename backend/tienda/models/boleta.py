"""
Tienda Services: Boleta SQLAlchemy Model
==========================================

What:  ORM model for the `boleta` (receipt) table.
Who:   Written by the Receipts service, read by both the Receipts and the
       Receipt-detail services.

numero_compra:
    Unique purchase number. Both services draw it from the shared
    `seq_numero_compra` sequence (see BoletaService.next_purchase_number);
    the column itself has no server default so the table definition is the
    same on every dialect.

comprador / productos:
    Stored as JSON documents (JSONB on PostgreSQL):
        comprador = {"nombre": ..., "correo": ..., "direccion": ...}
        productos = [{"id": ..., "nombre": ..., "precio": ..., "cantidad": ...}]
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import BigInteger, DateTime, Index, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from tienda.database import Base
from tienda.models.usuario import JSONDocument


class Boleta(Base):
    __tablename__ = "boleta"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    numero_compra: Mapped[int] = mapped_column(BigInteger, unique=True, nullable=False)
    fecha: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    comprador: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONDocument, nullable=True)
    productos: Mapped[Optional[List[Any]]] = mapped_column(JSONDocument, nullable=True)
    total: Mapped[Optional[Decimal]] = mapped_column(Numeric, nullable=True)
    user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        Index("idx_boleta_user_id", "user_id"),
        Index("idx_boleta_fecha", "fecha"),
    )

    def __repr__(self) -> str:
        return f"<Boleta(id={self.id}, numero_compra={self.numero_compra})>"
