from datetime import datetime, timedelta
from decimal import Decimal
from unittest import TestCase
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from core.authorship import Authorship, AuthorshipError
from core.events import VOUCHER_CREATE, EventDispatcher
from core.voucher_issuer import VoucherIssuer
from models import Base
from models.OrderItem import OrderItem
from models.Voucher import Voucher
from repository import voucher as voucherRepo
from repository.voucher import VoucherConflictError
from validators.voucher import (
    AlreadyUsedError,
    CodeLengthError,
    DuplicateCodeError,
    MissingCodeError,
    MissingCurrencyError,
    NonPositiveAmountError,
    StartsAfterExpiryError,
)

NOW = datetime(2026, 1, 1, 9, 0, 0)


class TestVoucherIssuer(TestCase):
    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.session = sessionmaker(self.engine)()

        self.events = []
        self.dispatcher = EventDispatcher()
        self.dispatcher.subscribe(VOUCHER_CREATE, self.events.append)

        self.issuer = VoucherIssuer(
            db=self.session,
            current_user_id="user-1",
            dispatcher=self.dispatcher,
            clock=lambda: NOW,
        )

    def tearDown(self):
        self.session.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def _voucher(self, **kwargs) -> Voucher:
        fields = {"code": "gift10", "currency_id": "GBP", "amount": "10.00"}
        fields.update(kwargs)
        return Voucher(**fields)

    def test_create_with_defaults(self):
        voucher = self.issuer.create(self._voucher())

        self.assertEqual(voucher.code, "GIFT10")
        self.assertEqual(voucher.starts_at, voucher.authorship.created_at)
        self.assertEqual(voucher.starts_at, NOW)
        self.assertEqual(voucher.authorship.created_by, "user-1")
        self.assertIsNone(voucher.expires_at)
        self.assertEqual(voucher.get_balance(), Decimal("10.00"))
        self.assertEqual(len(self.events), 1)
        self.assertEqual(self.events[0].voucher.code, "GIFT10")

    def test_create_reloads_from_database(self):
        with patch.object(
            voucherRepo, "get_voucher_by_code", wraps=voucherRepo.get_voucher_by_code
        ) as get_by_code:
            voucher = self.issuer.create(self._voucher())

        # duplicate pre-check, then the reload
        self.assertEqual(get_by_code.call_count, 2)
        self.assertEqual(self.session.get(Voucher, "GIFT10"), voucher)

    def test_create_keeps_existing_authorship(self):
        earlier = datetime(2025, 12, 24, 8, 30, 0)
        candidate = self._voucher()
        candidate.authorship = Authorship(created_at=earlier, created_by="alice")

        voucher = self.issuer.create(candidate)

        self.assertEqual(voucher.authorship.created_at, earlier)
        self.assertEqual(voucher.authorship.created_by, "alice")
        self.assertEqual(voucher.starts_at, earlier)

    def test_create_keeps_given_start_date(self):
        starts_at = datetime(2026, 2, 1, 0, 0, 0)
        voucher = self.issuer.create(self._voucher(starts_at=starts_at))
        self.assertEqual(voucher.starts_at, starts_at)
        self.assertEqual(voucher.authorship.created_at, NOW)

    def test_create_with_expiry_interval(self):
        self.issuer.set_expiry_interval(timedelta(days=30))
        starts_at = datetime(2026, 3, 1, 12, 0, 0)

        voucher = self.issuer.create(self._voucher(starts_at=starts_at))

        self.assertEqual(voucher.expires_at, starts_at + timedelta(days=30))

    def test_expiry_interval_does_not_override_given_expiry(self):
        self.issuer.set_expiry_interval(timedelta(days=30))
        expires_at = datetime(2026, 1, 5, 0, 0, 0)

        voucher = self.issuer.create(self._voucher(expires_at=expires_at))

        self.assertEqual(voucher.expires_at, expires_at)

    def test_expiry_interval_can_be_disabled(self):
        self.issuer.set_expiry_interval(timedelta(days=30))
        self.issuer.set_expiry_interval(None)

        voucher = self.issuer.create(self._voucher())

        self.assertIsNone(voucher.expires_at)

    def test_create_with_purchased_as_item(self):
        item = OrderItem(description="Gift card", currency_id="GBP", amount="25.00")
        self.session.add(item)
        self.session.commit()

        voucher = self.issuer.create(
            self._voucher(amount="25.00", purchased_as_item=item)
        )

        self.assertEqual(voucher.purchased_as_item_id, item.id)
        self.assertEqual(voucher.purchased_as_item.description, "Gift card")

    def test_missing_code_fails_before_persistence(self):
        with patch.object(voucherRepo, "insert_voucher") as insert_voucher:
            with self.assertRaises(MissingCodeError):
                self.issuer.create(self._voucher(code=""))
        insert_voucher.assert_not_called()
        self.assertEqual(self.events, [])

    def test_missing_code_reported_before_amount(self):
        with self.assertRaises(MissingCodeError):
            self.issuer.create(self._voucher(code=None, amount=0))

    def test_non_positive_amount(self):
        for amount in [0, "-5.00"]:
            with self.assertRaises(NonPositiveAmountError):
                self.issuer.create(self._voucher(amount=amount))
        self.assertIsNone(self.session.get(Voucher, "GIFT10"))

    def test_id_length(self):
        self.issuer.set_id_length(6)

        with self.assertRaises(CodeLengthError) as ctx:
            self.issuer.create(self._voucher(code="ABC"))
        self.assertEqual(ctx.exception.required_length, 6)
        self.assertIn("`6` characters long", str(ctx.exception))

        voucher = self.issuer.create(self._voucher(code="abcdef"))
        self.assertEqual(voucher.code, "ABCDEF")

    def test_id_length_reported_before_currency(self):
        self.issuer.set_id_length(6)
        with self.assertRaises(CodeLengthError):
            self.issuer.create(self._voucher(code="ABC", currency_id=None))

    def test_missing_currency(self):
        with self.assertRaises(MissingCurrencyError):
            self.issuer.create(self._voucher(currency_id=""))

    def test_duplicate_code_is_case_insensitive(self):
        voucher = self.issuer.create(self._voucher(code="abc123"))
        self.assertEqual(voucher.code, "ABC123")

        for code in ["ABC123", "abc123"]:
            with self.assertRaises(DuplicateCodeError) as ctx:
                self.issuer.create(self._voucher(code=code))
            self.assertEqual(ctx.exception.code, "ABC123")
        self.assertEqual(len(self.events), 1)

    def test_already_used(self):
        with self.assertRaises(AlreadyUsedError):
            self.issuer.create(self._voucher(used_at=NOW))

    def test_start_after_expiry(self):
        t1 = datetime(2026, 1, 10, 0, 0, 0)
        t2 = datetime(2026, 1, 20, 0, 0, 0)
        with self.assertRaises(StartsAfterExpiryError):
            self.issuer.create(self._voucher(starts_at=t2, expires_at=t1))

    def test_start_equal_to_expiry_is_allowed(self):
        voucher = self.issuer.create(self._voucher(starts_at=NOW, expires_at=NOW))
        self.assertEqual(voucher.expires_at, voucher.starts_at)

    def test_deferred_write_returns_in_memory_instance(self):
        self.issuer.set_transaction(self.session)
        candidate = self._voucher()

        with patch.object(
            voucherRepo, "get_voucher_by_code", wraps=voucherRepo.get_voucher_by_code
        ) as get_by_code:
            voucher = self.issuer.create(candidate)

        self.assertIs(voucher, candidate)
        # only the duplicate pre-check, no reload
        self.assertEqual(get_by_code.call_count, 1)
        self.assertEqual(len(self.events), 1)
        self.assertIs(self.events[0].voucher, candidate)

        self.session.commit()
        self.assertIsNotNone(voucherRepo.get_voucher_by_code(self.session, "gift10"))

    def test_deferred_write_is_rolled_back_with_outer_transaction(self):
        self.issuer.set_transaction(self.session)
        self.issuer.create(self._voucher())

        self.session.rollback()

        self.assertIsNone(voucherRepo.get_voucher_by_code(self.session, "GIFT10"))

    def test_conflict_racing_past_duplicate_check(self):
        self.issuer.create(self._voucher())
        self.session.expunge_all()

        with patch("core.voucher_issuer.validate_voucher_for_issue"):
            with self.assertRaises(VoucherConflictError) as ctx:
                self.issuer.create(self._voucher())

        self.assertEqual(ctx.exception.code, "GIFT10")
        self.assertEqual(len(self.events), 1)

    def test_failing_listener_does_not_break_create(self):
        def broken(event):
            raise RuntimeError("listener down")

        self.dispatcher.subscribe(VOUCHER_CREATE, broken)

        voucher = self.issuer.create(self._voucher())

        self.assertEqual(voucher.code, "GIFT10")
        self.assertEqual(len(self.events), 1)

    def test_code_is_trimmed_before_storage(self):
        self.issuer.set_id_length(6)

        voucher = self.issuer.create(self._voucher(code=" gift10 "))

        self.assertIsNotNone(voucher)
        self.assertEqual(voucher.code, "GIFT10")
        self.assertIsNotNone(self.session.get(Voucher, "GIFT10"))

    def test_trimmed_code_is_a_duplicate(self):
        self.issuer.create(self._voucher(code="ABC"))
        with self.assertRaises(DuplicateCodeError):
            self.issuer.create(self._voucher(code=" abc "))

    def test_partial_authorship_is_rejected(self):
        candidate = self._voucher()
        candidate.created_at = NOW

        with patch.object(voucherRepo, "insert_voucher") as insert_voucher:
            with self.assertRaises(AuthorshipError):
                self.issuer.create(candidate)
        insert_voucher.assert_not_called()


class TestVoucherIssuerDefaultClock(TestCase):
    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.session = sessionmaker(self.engine)()
        self.issuer = VoucherIssuer(
            db=self.session, current_user_id="user-1", dispatcher=EventDispatcher()
        )

    def tearDown(self):
        self.session.close()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    def test_naive_expiry_takes_clock_timezone(self):
        self.issuer.set_transaction(self.session)
        candidate = Voucher(
            code="gift10",
            currency_id="GBP",
            amount="10",
            expires_at=datetime(2099, 1, 1),
        )

        voucher = self.issuer.create(candidate)

        self.assertIsNotNone(voucher.starts_at.tzinfo)
        self.assertIsNotNone(voucher.expires_at.tzinfo)
        self.assertEqual(voucher.expires_at.year, 2099)
        self.assertEqual(voucher.expires_at.hour, 0)

    def test_naive_expiry_with_direct_write(self):
        voucher = self.issuer.create(
            Voucher(
                code="gift10",
                currency_id="GBP",
                amount="10",
                expires_at=datetime(2099, 1, 1),
            )
        )
        self.assertIsNotNone(voucher)
        self.assertEqual(voucher.code, "GIFT10")

    def test_naive_expiry_in_the_past(self):
        with self.assertRaises(StartsAfterExpiryError):
            self.issuer.create(
                Voucher(
                    code="gift10",
                    currency_id="GBP",
                    amount="10",
                    expires_at=datetime(2000, 1, 1),
                )
            )
