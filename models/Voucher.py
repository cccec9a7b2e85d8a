from decimal import Decimal
from sqlalchemy import UUID, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, composite, mapped_column, relationship, validates
from core.authorship import Authorship
from models import Base


def to_decimal(value):
    if value is None or isinstance(value, Decimal):
        return value
    # go through str so 0.1 stays 0.1 instead of the binary float expansion
    return Decimal(str(value))


class Voucher(Base):
    __tablename__ = "voucher"

    code: Mapped[str] = mapped_column("code", String, primary_key=True)
    currency_id: Mapped[str] = mapped_column("currency_id", String, nullable=False)
    amount: Mapped[Decimal] = mapped_column("amount", Numeric(10, 2), nullable=False)

    starts_at = mapped_column("starts_at", DateTime(timezone=True), nullable=True)
    expires_at = mapped_column("expires_at", DateTime(timezone=True), nullable=True)
    used_at = mapped_column("used_at", DateTime(timezone=True), nullable=True)

    purchased_as_item_id = mapped_column(
        "purchased_as_item_id",
        UUID(as_uuid=True),
        ForeignKey("order_item.id"),
        nullable=True,
        index=True,
    )

    created_at = mapped_column("created_at", DateTime(timezone=True), nullable=False)
    created_by: Mapped[str] = mapped_column("created_by", String, nullable=False)
    authorship: Mapped[Authorship] = composite(Authorship, "created_at", "created_by")

    # Relationship
    purchased_as_item = relationship("OrderItem", backref="vouchers")
    usage = relationship(
        "VoucherUsage", back_populates="voucher", order_by="VoucherUsage.id"
    )

    @validates("amount")
    def validate_amount(self, key, value):
        return to_decimal(value)

    def get_amount_used(self) -> Decimal:
        """Total amount consumed across every usage entry"""
        return sum((payment.amount for payment in self.usage), Decimal("0"))

    def get_balance(self) -> Decimal:
        """Original amount less the amount used to date. Not clamped at zero."""
        return self.amount - self.get_amount_used()
