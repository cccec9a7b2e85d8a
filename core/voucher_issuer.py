from datetime import timedelta
from typing import Optional
from sqlalchemy.orm import Session
from core.authorship import has_authorship, stamp_authorship
from core.events import VOUCHER_CREATE, EventDispatcher, VoucherEvent
from core.helper import Clock, align_timezone, make_clock
from core.log import logger
from models.Voucher import Voucher
from repository import voucher as voucherRepo
from settings import TZ, VOUCHER_EXPIRY_DAYS, VOUCHER_ID_LENGTH
from validators.voucher import VoucherValidationError, validate_voucher_for_issue


class VoucherIssuer:
    """
    Face-value voucher creator.

    Fills in defaults on a candidate voucher, validates it, inserts it and
    announces the creation on the dispatcher.
    """

    def __init__(
        self,
        db: Session,
        current_user_id: str,
        dispatcher: EventDispatcher,
        clock: Optional[Clock] = None,
        id_length: Optional[int] = None,
        expiry_interval: Optional[timedelta] = None,
    ) -> None:
        self.db = db
        self.current_user_id = current_user_id
        self.dispatcher = dispatcher
        self.clock = clock or make_clock(TZ)
        self.id_length = id_length
        self.expiry_interval = expiry_interval
        self.is_commit = True

    def set_transaction(self, db: Session) -> None:
        """Write into a caller-controlled transaction. The insert is flushed
        but not committed, and `create()` skips the reload."""
        self.db = db
        self.is_commit = False

    def set_id_length(self, length: Optional[int]) -> None:
        self.id_length = length

    def set_expiry_interval(self, interval: Optional[timedelta] = None) -> None:
        """
        Set the interval used to calculate the expiry date of vouchers that
        don't already have one. Pass None to not calculate an expiry date.
        """
        self.expiry_interval = interval

    def resolve_defaults(self, voucher: Voucher) -> Voucher:
        # Set created metadata if not already set
        if not has_authorship(voucher):
            stamp_authorship(
                voucher, created_at=self.clock(), created_by=self.current_user_id
            )
        created_at = voucher.authorship.created_at

        # Start date falls back to the creation date
        if not voucher.starts_at:
            voucher.starts_at = created_at

        # naive dates given by the caller are read in the clock's timezone
        voucher.starts_at = align_timezone(voucher.starts_at, created_at)
        voucher.expires_at = align_timezone(voucher.expires_at, created_at)
        voucher.expires_at = align_timezone(voucher.expires_at, voucher.starts_at)
        voucher.starts_at = align_timezone(voucher.starts_at, voucher.expires_at)

        if self.expiry_interval and not voucher.expires_at:
            voucher.expires_at = voucher.starts_at + self.expiry_interval

        # Codes are case insensitive, store them trimmed and uppercase
        if voucher.code:
            voucher.code = voucher.code.strip().upper()

        return voucher

    def create(self, voucher: Voucher) -> Voucher:
        """
        Create a voucher.

        The voucher's defaults are resolved first (see `resolve_defaults`),
        then it is validated, inserted and a `voucher.create` event is
        published.

        Returns the in-memory voucher when writing into an outer transaction,
        otherwise a fresh instance re-loaded from the database.

        Raises:
            VoucherValidationError: If the voucher cannot be issued
            AuthorshipError: If the voucher carries incomplete authorship
            VoucherConflictError: If the database rejects the insert
        """
        self.resolve_defaults(voucher)

        try:
            validate_voucher_for_issue(
                db=self.db, voucher=voucher, id_length=self.id_length
            )
        except VoucherValidationError as e:
            logger.warning(f"Voucher {voucher.code!r} rejected: {e}")
            raise

        logger.info(f"Creating voucher {voucher.code} in the database")
        voucherRepo.insert_voucher(db=self.db, voucher=voucher, is_commit=self.is_commit)

        self.dispatcher.publish(VOUCHER_CREATE, VoucherEvent(voucher))

        if not self.is_commit:
            return voucher

        return voucherRepo.get_voucher_by_code(db=self.db, code=voucher.code)


def issuer_from_settings(
    db: Session,
    current_user_id: str,
    dispatcher: EventDispatcher,
    clock: Optional[Clock] = None,
) -> VoucherIssuer:
    expiry_interval = None
    if VOUCHER_EXPIRY_DAYS:
        expiry_interval = timedelta(days=VOUCHER_EXPIRY_DAYS)

    return VoucherIssuer(
        db=db,
        current_user_id=current_user_id,
        dispatcher=dispatcher,
        clock=clock,
        id_length=VOUCHER_ID_LENGTH,
        expiry_interval=expiry_interval,
    )
