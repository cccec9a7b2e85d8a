from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel


class VoucherResponseItem(BaseModel):
    code: str
    currency_id: str
    amount: Decimal
    starts_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    used_at: Optional[datetime] = None
    purchased_as_item_id: Optional[UUID] = None
    created_at: datetime
    created_by: str
    model_config = {"from_attributes": True}


class VoucherUsageItem(BaseModel):
    id: int
    amount: Decimal
    payment_reference: Optional[str] = None
    created_at: datetime
    model_config = {"from_attributes": True}


class VoucherDetailResponse(VoucherResponseItem):
    amount_used: Decimal
    balance: Decimal
    usage: List[VoucherUsageItem] = []


def voucher_detail_from_model(voucher) -> VoucherDetailResponse:
    return VoucherDetailResponse(
        **VoucherResponseItem.model_validate(voucher).model_dump(),
        amount_used=voucher.get_amount_used(),
        balance=voucher.get_balance(),
        usage=[VoucherUsageItem.model_validate(u) for u in voucher.usage],
    )


class VoucherListResponse(BaseModel):
    page: int
    page_size: int
    count: int
    page_count: int
    results: List[VoucherResponseItem]
