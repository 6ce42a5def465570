"""
Tienda Services: Request Payload Reader
=========================================

What:  Reads a request body that may be JSON, urlencoded or multipart into a
       plain dict, plus the optional `imagen` upload.
Who:   The product and receipt routes, whose clients send all three forms.

RowId is the path type for serial primary keys: an id outside the INT32
column range is a 400 from request validation rather than a driver error.

The routes using this helper declare their body through `openapi_extra`
(see body_docs) so /api-docs still shows the expected fields.
"""

import json
from typing import Annotated, Any, Dict, Optional, Tuple, Type

from fastapi import Path
from pydantic import BaseModel
from starlette.datastructures import UploadFile
from starlette.requests import Request

from tienda.coercion import INT32
from tienda.exceptions import ValidationError

FILE_FIELD = "imagen"

FORM_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")

RowId = Annotated[int, Path(ge=INT32[0], le=INT32[1], description="Row id")]


async def read_payload(request: Request) -> Tuple[Dict[str, Any], Optional[UploadFile]]:
    """
    Returns:
        (fields, upload). upload is the `imagen` file part when one with a
        filename was sent, else None. Other file parts are ignored.

    Raises:
        ValidationError for a JSON body that does not parse or is not an object.
    """
    content_type = request.headers.get("content-type", "").lower()

    if content_type.startswith(FORM_TYPES):
        form = await request.form()
        fields: Dict[str, Any] = {}
        upload = None
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == FILE_FIELD and value.filename:
                    upload = value
                continue
            fields[key] = value
        return fields, upload

    body = await request.body()
    if not body.strip():
        return {}, None
    try:
        data = json.loads(body)
    # ValueError covers JSONDecodeError, UnicodeDecodeError and integer
    # literals past the interpreter's digit limit
    except ValueError as e:
        raise ValidationError(message="El cuerpo no es JSON válido") from e
    if not isinstance(data, dict):
        raise ValidationError(message="El cuerpo debe ser un objeto JSON")
    return data, None


def body_docs(model: Type[BaseModel], with_file: bool = False) -> Dict[str, Any]:
    """OpenAPI requestBody for a route that reads its body with read_payload."""
    schema = model.model_json_schema()
    content: Dict[str, Any] = {
        "application/json": {"schema": schema},
        "application/x-www-form-urlencoded": {"schema": schema},
    }
    if with_file:
        form_schema = {
            **schema,
            "properties": {
                **schema.get("properties", {}),
                FILE_FIELD: {"type": "string", "format": "binary"},
            },
        }
        content["multipart/form-data"] = {"schema": form_schema}
    return {"requestBody": {"content": content, "required": True}}
