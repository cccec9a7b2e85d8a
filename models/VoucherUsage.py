from decimal import Decimal
from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from models import Base
from models.Voucher import to_decimal


class VoucherUsage(Base):
    __tablename__ = "voucher_usage"

    id: Mapped[int] = mapped_column("id", Integer, primary_key=True, autoincrement=True)
    voucher_code: Mapped[str] = mapped_column(
        "voucher_code", String, ForeignKey("voucher.code"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column("amount", Numeric(10, 2), nullable=False)
    payment_reference: Mapped[str] = mapped_column(
        "payment_reference", String, nullable=True
    )
    created_at = mapped_column("created_at", DateTime(timezone=True), nullable=False)

    # Relationship
    voucher = relationship("Voucher", back_populates="usage")

    @validates("amount")
    def validate_amount(self, key, value):
        return to_decimal(value)
