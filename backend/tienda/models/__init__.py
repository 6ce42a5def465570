"""ORM models; importing this package registers every table with Base.metadata."""

from tienda.models.boleta import Boleta
from tienda.models.categoria import Categoria
from tienda.models.producto import Producto
from tienda.models.usuario import Usuario

__all__ = ["Boleta", "Categoria", "Producto", "Usuario"]
