"""
Tienda Services: Boleta Schemas
=================================

What:  Response contract shared by the Receipts and Receipt-detail services.

BoletaCreate only documents the POST /boletas body: `comprador` and
`productos` may arrive as JSON text and each malformed field has its own
message, so BoletaService normalizes the raw payload itself.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class BoletaResponse(BaseModel):
    """
    What:  One receipt.

    `total` is always a number (0 when the stored value is null).
    """
    id: int
    numero_compra: int = Field(description="Unique purchase number")
    fecha: Optional[datetime] = None
    comprador: Optional[Any] = Field(default=None, description="Buyer: nombre, correo, direccion")
    productos: Optional[Any] = Field(default=None, description="Line items: id, nombre, precio, cantidad")
    total: float = 0
    user_id: Optional[int] = None

    model_config = {"from_attributes": True}

    @field_validator("total", mode="before")
    @classmethod
    def total_as_number(cls, v: Any) -> Any:
        return 0 if v is None else v


class BoletaCreate(BaseModel):
    """
    Documented shape of POST /boletas. The route reads the raw payload so
    that JSON-text values of comprador/productos can be reported precisely.
    """
    comprador: Union[Dict[str, Any], str] = Field(description="Buyer object or its JSON text")
    productos: Union[List[Any], str] = Field(description="Non-empty line-item list or its JSON text")
    fecha: Optional[Union[str, int]] = Field(default=None, description="ISO 8601 date; now when omitted")
    total: Optional[Union[float, str]] = Field(default=None, description="Receipt total; 0 when omitted")
    user_id: Optional[Union[int, str]] = Field(default=None, description="Buyer's user id, if any")
