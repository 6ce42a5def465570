"""
Tienda Services: Pydantic Schemas
===================================

What:  API contracts of the five services, separate from the ORM models so
       that stored columns (e.g. usuario.password) never leak into responses.
"""

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tienda.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_fields(model: Type[ModelT], data: Mapping[str, Any]) -> ModelT:
    """
    Validate a raw request payload, reporting the first bad field as a 400.

    Example:
        validate_fields(ProductoCreate, {"precio": "abc"})
        → ValidationError("precio debe ser numérico", field="precio")
    """
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        reason = str(first.get("msg", "inválido")).removeprefix("Value error, ")
        message = f"{field} {reason}" if field else reason
        raise ValidationError(
            message=message,
            field=field,
            context={"errors": len(e.errors())},
        ) from e
