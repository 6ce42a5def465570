"""Request and response contracts of the Categories service."""

from typing import List, Optional

from pydantic import BaseModel, Field


class CategoriaIn(BaseModel):
    """Body of POST /categorias and PUT /categorias/{id}; the name is trimmed by the service."""

    nombre: Optional[str] = Field(default=None, description="Category name")

    model_config = {"extra": "ignore"}


class CategoriaResponse(BaseModel):
    id: int
    nombre: str

    model_config = {"from_attributes": True}


class SeedResponse(BaseModel):
    ok: bool = True
    categorias: List[str] = Field(description="All category names after seeding, sorted")
