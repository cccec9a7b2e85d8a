from typing import List, Optional
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from core.log import logger
from models.Voucher import Voucher
from models.VoucherUsage import VoucherUsage
from schemas.voucher import VoucherResponseItem


class VoucherConflictError(Exception):
    """The store refused the voucher, typically because its code raced past
    the duplicate pre-check."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


def get_voucher_by_code(db: Session, code: str) -> Optional[Voucher]:
    stmt = select(Voucher).where(func.upper(Voucher.code) == code.strip().upper())
    voucher = db.execute(stmt).scalar()
    return voucher


def insert_voucher(db: Session, voucher: Voucher, is_commit: bool = True) -> Voucher:
    """
    Add a voucher to the session and flush it

    With is_commit the insert is committed straight away, otherwise it is
    left pending in the caller's transaction.

    Raises:
        VoucherConflictError: If the store rejects the row
    """
    try:
        db.add(voucher)
        db.flush()
        if is_commit:
            db.commit()
    except IntegrityError as e:
        logger.error(f"Integrity constraint violation for voucher {voucher.code}: {e}")
        # a deferred insert belongs to the caller's transaction, which it rolls back
        if is_commit:
            db.rollback()
        raise VoucherConflictError(
            code=voucher.code,
            message=f"Cannot create voucher: storage rejected voucher `{voucher.code}`",
        ) from e
    return voucher


def get_voucher_usage(db: Session, code: str) -> List[VoucherUsage]:
    stmt = (
        select(VoucherUsage)
        .where(func.upper(VoucherUsage.voucher_code) == code.strip().upper())
        .order_by(VoucherUsage.id)
    )
    return list(db.execute(stmt).scalars().all())


def get_vouchers_per_page(
    db: Session,
    page: int,
    page_size: int,
    search: Optional[str] = None,
) -> dict:
    offset = (page - 1) * page_size

    stmt = select(Voucher)

    if search:
        stmt = stmt.where(
            Voucher.code.ilike(f"%{search}%"),
        )

    total_count = db.scalar(select(func.count()).select_from(stmt.subquery()))

    stmt = stmt.order_by(Voucher.created_at.desc(), Voucher.code)
    stmt = stmt.offset(offset).limit(page_size)

    results = db.scalars(stmt).all()
    results_schema = [VoucherResponseItem.model_validate(r) for r in results]
    page_count = (total_count + page_size - 1) // page_size if total_count else 0

    return {
        "page": page,
        "page_size": page_size,
        "count": total_count,
        "page_count": page_count,
        "results": results_schema,
    }
