"""
Tienda Services: Producto Schemas
===================================

What:  Request and response contracts of the Products service.
How:   Product bodies arrive as JSON, urlencoded forms or multipart forms, so
       every numeric and boolean field may be a string. Before-validators
       coerce them:

           precio         absent/"" → 0       "1990"  → Decimal("1990")
           precio_oferta  absent/"" → null
           stock          absent/"" → 0       "50"    → 50
           stock_critico  absent/"" → 0
           en_oferta      "true", true, 1, "1" → true; anything else → false

       A value that is present but not numeric is rejected (400).

ProductoPatch lists exactly the columns an update may touch. Keys outside it
are dropped by pydantic and never reach the UPDATE statement.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from tienda.coercion import is_blank, to_decimal, to_flag, to_int, to_text

TEXT_FIELDS = ("codigo", "nombre", "descripcion", "categoria")


class _ProductoFields(BaseModel):
    """Coercion rules shared by create and update."""

    model_config = {"extra": "ignore"}

    @field_validator("precio", mode="before", check_fields=False)
    @classmethod
    def coerce_precio(cls, v: Any) -> Decimal:
        return Decimal(0) if is_blank(v) else to_decimal(v)

    @field_validator("precio_oferta", mode="before", check_fields=False)
    @classmethod
    def coerce_precio_oferta(cls, v: Any) -> Optional[Decimal]:
        return None if is_blank(v) else to_decimal(v)

    @field_validator("stock", "stock_critico", mode="before", check_fields=False)
    @classmethod
    def coerce_stock(cls, v: Any) -> int:
        return 0 if is_blank(v) else to_int(v)

    @field_validator("en_oferta", mode="before", check_fields=False)
    @classmethod
    def coerce_en_oferta(cls, v: Any) -> bool:
        return to_flag(v)


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class ProductoCreate(_ProductoFields):
    """Fields of POST /productos (the uploaded file is handled separately)."""

    codigo: Optional[str] = None
    nombre: Optional[str] = None
    descripcion: Optional[str] = None
    categoria: Optional[str] = None
    precio: Decimal = Decimal(0)
    precio_oferta: Optional[Decimal] = None
    en_oferta: bool = False
    stock: int = 0
    stock_critico: int = 0
    imagen: Optional[str] = Field(default=None, description="Image URL, used when no file is uploaded")

    @field_validator(*TEXT_FIELDS, "imagen", mode="before")
    @classmethod
    def blank_text(cls, v: Any) -> Any:
        v = to_text(v)
        return None if is_blank(v) else v

    def column_values(self) -> Dict[str, Any]:
        values = self.model_dump(exclude={"imagen"})
        values["imagen_url"] = self.imagen
        return values


class ProductoPatch(_ProductoFields):
    """
    Fields of PUT /productos/{id}.

    Only the keys the client actually sent are applied
    (model_dump(exclude_unset=True)). `imagen` is the URL form of the image and
    is stored as imagen_url; an uploaded file overrides both.
    """

    codigo: Optional[str] = None
    nombre: Optional[str] = None
    descripcion: Optional[str] = None
    categoria: Optional[str] = None
    precio: Optional[Decimal] = None
    precio_oferta: Optional[Decimal] = None
    en_oferta: Optional[bool] = None
    stock: Optional[int] = None
    stock_critico: Optional[int] = None
    imagen_url: Optional[str] = None
    imagen: Optional[str] = None

    @field_validator(*TEXT_FIELDS, "imagen_url", "imagen", mode="before")
    @classmethod
    def numbers_as_text(cls, v: Any) -> Any:
        return to_text(v)

    def column_values(self) -> Dict[str, Any]:
        """Columns to SET, keyed by column name."""
        values = self.model_dump(exclude_unset=True)
        imagen = values.pop("imagen", None)
        if imagen and "imagen_url" not in values:
            values["imagen_url"] = imagen
        return values


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class ProductoResponse(BaseModel):
    """Full product row; prices are reported as numbers."""

    id: int
    codigo: Optional[str] = None
    nombre: Optional[str] = None
    descripcion: Optional[str] = None
    categoria: Optional[str] = None
    precio: Optional[float] = None
    precio_oferta: Optional[float] = None
    en_oferta: Optional[bool] = None
    stock: Optional[int] = None
    stock_critico: Optional[int] = None
    imagen_url: Optional[str] = None

    model_config = {"from_attributes": True}
