import sqlalchemy as sa


metadata = sa.MetaData()

customers = sa.Table(
    "customers",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("currency", sa.String(3), nullable=False),
)

invoices = sa.Table(
    "invoices",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column("customer_id", sa.Integer, sa.ForeignKey("customers.id"), nullable=False),
    sa.Column("currency", sa.String(3), nullable=False),
    sa.Column("amount", sa.Numeric(asdecimal=True), nullable=False),
    sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
    sa.Index("ix_invoices_status", "status"),
    sa.Index("ix_invoices_customer_id", "customer_id"),
)
