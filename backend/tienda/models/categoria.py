"""
Tienda Services: Categoria Model
==================================

What:  ORM model for the `categoria` table owned by the Categories service.
Who:   CategoriaService (CRUD and the default seed) and Alembic.

Table notes:
    - nombre is unique; the service trims it before every write, so
      " Gamer " and "Gamer" collide on the constraint.
    - Products reference a category by name (producto.categoria), not by
      id. Renaming a category does not touch products; deleting one first
      clears the name from them (see CATEGORY_CLEANUP_POLICY).
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tienda.database import Base


class Categoria(Base):
    """A named product category, e.g. "Gamer" or "Electrónica"."""

    __tablename__ = "categoria"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # The seed's ON CONFLICT (nombre) targets this constraint
    nombre: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Categoria(id={self.id}, nombre='{self.nombre}')>"
