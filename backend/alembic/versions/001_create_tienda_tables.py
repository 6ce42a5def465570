"""Create tienda tables

Revision ID: 001
Revises: None
Create Date: 2026-10-01 00:00:00.000000+00:00

What:  Creates usuario, producto, categoria and boleta, their indexes, and
       the seq_numero_compra sequence (PostgreSQL only).

Rollback: downgrade() drops all four tables and the sequence.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _json_document():
    return sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    bind = op.get_bind()

    op.create_table(
        "usuario",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("run", sa.String(50), nullable=True),
        sa.Column("nombre", sa.String(100), nullable=True),
        sa.Column("apellidos", sa.String(100), nullable=True),
        sa.Column("correo", sa.String(100), nullable=False),
        # bcrypt hash; plaintext rows from older deployments are rehashed on login
        sa.Column("password", sa.String(200), nullable=False),
        sa.Column("fecha_nacimiento", sa.Date(), nullable=True),
        sa.Column("tipo_usuario", sa.String(50), nullable=True, server_default=sa.text("'cliente'")),
        sa.Column("direccion", sa.Text(), nullable=True),
        sa.Column("region", sa.String(50), nullable=True),
        sa.Column("comuna", sa.String(50), nullable=True),
        sa.Column("departamento", sa.String(50), nullable=True),
        sa.Column("indicacion", sa.Text(), nullable=True),
        sa.Column("historial", _json_document(), nullable=True, server_default=sa.text("'[]'")),
        sa.PrimaryKeyConstraint("id", name="pk_usuario"),
        sa.UniqueConstraint("correo", name="uq_usuario_correo"),
    )

    op.create_table(
        "producto",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("codigo", sa.String(100), nullable=True),
        sa.Column("nombre", sa.String(200), nullable=True),
        sa.Column("descripcion", sa.Text(), nullable=True),
        # category name, nulled when the category is deleted
        sa.Column("categoria", sa.String(100), nullable=True),
        sa.Column("precio", sa.Numeric(), nullable=True, server_default=sa.text("0")),
        sa.Column("precio_oferta", sa.Numeric(), nullable=True),
        sa.Column("en_oferta", sa.Boolean(), nullable=True, server_default=sa.text("false")),
        sa.Column("stock", sa.Integer(), nullable=True, server_default=sa.text("0")),
        sa.Column("stock_critico", sa.Integer(), nullable=True, server_default=sa.text("0")),
        sa.Column("imagen_url", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_producto"),
    )
    op.create_index("idx_producto_categoria", "producto", ["categoria"])

    op.create_table(
        "categoria",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("nombre", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_categoria"),
        sa.UniqueConstraint("nombre", name="uq_categoria_nombre"),
    )

    if bind.dialect.name == "postgresql":
        op.execute(sa.schema.CreateSequence(sa.Sequence("seq_numero_compra", start=1)))

    op.create_table(
        "boleta",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("numero_compra", sa.BigInteger(), nullable=False),
        sa.Column("fecha", sa.DateTime(), nullable=True),
        sa.Column("comprador", _json_document(), nullable=True),
        sa.Column("productos", _json_document(), nullable=True),
        sa.Column("total", sa.Numeric(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_boleta"),
        sa.UniqueConstraint("numero_compra", name="uq_boleta_numero_compra"),
    )
    op.create_index("idx_boleta_user_id", "boleta", ["user_id"])
    op.create_index("idx_boleta_fecha", "boleta", ["fecha"])


def downgrade() -> None:
    op.drop_index("idx_boleta_fecha", table_name="boleta")
    op.drop_index("idx_boleta_user_id", table_name="boleta")
    op.drop_table("boleta")

    if op.get_bind().dialect.name == "postgresql":
        op.execute(sa.schema.DropSequence(sa.Sequence("seq_numero_compra")))

    op.drop_table("categoria")
    op.drop_index("idx_producto_categoria", table_name="producto")
    op.drop_table("producto")
    op.drop_table("usuario")
