from typing import Optional
from sqlalchemy.orm import Session
from models.Voucher import Voucher
from repository import voucher as voucherRepo


class VoucherValidationError(ValueError):
    pass


class MissingCodeError(VoucherValidationError):
    def __init__(self) -> None:
        super().__init__("Cannot create voucher: ID is not set")


class NonPositiveAmountError(VoucherValidationError):
    def __init__(self, amount) -> None:
        super().__init__(
            f"Cannot create voucher: amount is not a positive value, `{amount}` given"
        )
        self.amount = amount


class CodeLengthError(VoucherValidationError):
    def __init__(self, code: str, required_length: int) -> None:
        super().__init__(
            f"Cannot create voucher: ID must be `{required_length}` characters long, "
            f"`{code}` given"
        )
        self.code = code
        self.required_length = required_length


class MissingCurrencyError(VoucherValidationError):
    def __init__(self) -> None:
        super().__init__("Cannot create voucher: currency ID is not set")


class DuplicateCodeError(VoucherValidationError):
    def __init__(self, code: str) -> None:
        super().__init__(
            f"Cannot create voucher: a voucher already exists with ID `{code}`"
        )
        self.code = code


class AlreadyUsedError(VoucherValidationError):
    def __init__(self) -> None:
        super().__init__("Cannot create voucher: it is already marked as used")


class StartsAfterExpiryError(VoucherValidationError):
    def __init__(self, starts_at, expires_at) -> None:
        super().__init__(
            f"Cannot create voucher: start date `{starts_at}` cannot be after "
            f"expiry date `{expires_at}`"
        )
        self.starts_at = starts_at
        self.expires_at = expires_at


def validate_voucher_for_issue(
    db: Session,
    voucher: Voucher,
    id_length: Optional[int] = None,
) -> None:
    """
    Validate a voucher to ensure it can be created. Rules run in a fixed
    order and the first failure is raised.

    Raises:
        MissingCodeError: If the voucher code is not set
        NonPositiveAmountError: If the amount is not a positive value
        CodeLengthError: If the code length differs from id_length (if defined)
        MissingCurrencyError: If the currency is not set
        DuplicateCodeError: If a voucher already exists with the same code
        AlreadyUsedError: If the voucher has a "used at" date
        StartsAfterExpiryError: If the start date is after the expiry date
    """
    if not voucher.code:
        raise MissingCodeError()

    if voucher.amount is None or voucher.amount <= 0:
        raise NonPositiveAmountError(voucher.amount)

    if id_length and len(voucher.code) != id_length:
        raise CodeLengthError(code=voucher.code, required_length=id_length)

    if not voucher.currency_id:
        raise MissingCurrencyError()

    if voucherRepo.get_voucher_by_code(db=db, code=voucher.code) is not None:
        raise DuplicateCodeError(voucher.code)

    if voucher.used_at:
        raise AlreadyUsedError()

    if voucher.expires_at and voucher.starts_at > voucher.expires_at:
        raise StartsAfterExpiryError(
            starts_at=voucher.starts_at, expires_at=voucher.expires_at
        )
