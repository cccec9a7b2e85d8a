import uuid
from decimal import Decimal
from sqlalchemy import UUID, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from models import Base


class OrderItem(Base):
    __tablename__ = "order_item"

    id: Mapped[str] = mapped_column(
        "id", UUID(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4
    )
    description: Mapped[str] = mapped_column("description", String, nullable=True)
    currency_id: Mapped[str] = mapped_column("currency_id", String, nullable=False)
    amount: Mapped[Decimal] = mapped_column("amount", Numeric(10, 2), nullable=False)
