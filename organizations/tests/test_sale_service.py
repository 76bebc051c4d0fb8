from unittest.mock import MagicMock

from django.test import TestCase

from ledger.constants import MAX_AMOUNT
from ledger.models import Payout
from ledger.services import DatabaseLedger
from organizations.exceptions import (
    ArithmeticOverflowError,
    InsufficientAvailabilityError,
    NotAdminError,
    OrganizationAlreadyRegisteredError,
    OrganizationNotFoundError,
    PaymentMismatchError,
    PayoutFailedError,
    ReentrancyError,
    ReservedAddressError,
    SaleModeError,
    ZeroAmountError,
)
from organizations.locks import is_locked
from organizations.models import Organization, TokenPurchase
from organizations.pricing import FIXED_PRICE, FIXED_QUANTITY
from organizations.services import SaleService, get_organization, treasury_address

ORG = "org-curve"
BUYER = "buyer-1"


class RegisterOrganizationTests(TestCase):
    def setUp(self):
        self.ledger = DatabaseLedger()
        self.service = SaleService(ledger=self.ledger)

    def test_register_mints_supply_into_treasury(self):
        snapshot = self.service.register_organization(ORG, FIXED_QUANTITY, 1000)

        self.assertEqual(snapshot.token_id, 1)
        self.assertEqual(snapshot.tokens_available, 1000)
        self.assertEqual(snapshot.tokens_sold, 0)
        self.assertEqual(snapshot.next_votation_id, 1)
        self.assertEqual(snapshot.payout_address, ORG)
        self.assertEqual(self.ledger.balance_of(treasury_address(), 1), 1000)

    def test_token_ids_are_allocated_sequentially(self):
        first = self.service.register_organization("org-a", FIXED_QUANTITY, 10)
        second = self.service.register_organization("org-b", FIXED_PRICE, 10, payout_address="vault-b")
        self.assertEqual((first.token_id, second.token_id), (1, 2))
        self.assertEqual(second.payout_address, "vault-b")

    def test_register_twice_fails(self):
        self.service.register_organization(ORG, FIXED_QUANTITY, 1000)
        with self.assertRaises(OrganizationAlreadyRegisteredError):
            self.service.register_organization(ORG, FIXED_PRICE, 5)
        self.assertEqual(Organization.objects.count(), 1)

    def test_zero_supply_fails(self):
        with self.assertRaises(ZeroAmountError):
            self.service.register_organization(ORG, FIXED_QUANTITY, 0)
        self.assertFalse(Organization.objects.exists())

    def test_unknown_mode_fails(self):
        with self.assertRaises(SaleModeError):
            self.service.register_organization(ORG, "dutch_auction", 10)

    def test_get_organization_unknown(self):
        with self.assertRaises(OrganizationNotFoundError):
            get_organization("nobody")


class BuyTokensTests(TestCase):
    def setUp(self):
        self.ledger = DatabaseLedger()
        self.service = SaleService(ledger=self.ledger)
        self.service.register_organization(ORG, FIXED_QUANTITY, 1000)

    def test_first_unit_costs_base_price(self):
        purchase = self.service.buy_tokens(ORG, BUYER, 1, 10_000)

        self.assertEqual(purchase.total_price, 10_000)
        self.assertEqual(purchase.tokens_sold_before, 0)
        org = get_organization(ORG)
        self.assertEqual(org.tokens_available, 999)
        self.assertEqual(org.tokens_sold, 1)
        self.assertEqual(self.ledger.balance_of(BUYER, org.token_id), 1)
        self.assertEqual(self.ledger.balance_of(treasury_address(), org.token_id), 999)
        payout = Payout.objects.get()
        self.assertEqual((payout.recipient, payout.value), (ORG, 10_000))

    def test_second_purchase_follows_the_curve(self):
        self.service.buy_tokens(ORG, BUYER, 1, 10_000)
        self.assertEqual(self.service.quote_purchase(ORG, 2), 2 * 10_000 + 3 * 1_000)
        purchase = self.service.buy_tokens(ORG, BUYER, 2, 23_000)
        self.assertEqual(purchase.tokens_sold_before, 1)
        self.assertEqual(get_organization(ORG).tokens_sold, 3)

    def test_payment_must_match_exactly(self):
        for paid in (9_999, 10_001, 0):
            with self.subTest(paid=paid):
                with self.assertRaises(PaymentMismatchError):
                    self.service.buy_tokens(ORG, BUYER, 1, paid)
        org = get_organization(ORG)
        self.assertEqual((org.tokens_available, org.tokens_sold), (1000, 0))
        self.assertFalse(TokenPurchase.objects.exists())
        self.assertFalse(Payout.objects.exists())

    def test_total_supply_is_conserved_across_purchases(self):
        for amount in (1, 5, 17, 3):
            self.service.buy_tokens(ORG, BUYER, amount, self.service.quote_purchase(ORG, amount))
            org = get_organization(ORG)
            self.assertEqual(org.tokens_available + org.tokens_sold, 1000)
        self.assertEqual(self.ledger.balance_of(BUYER, org.token_id), 26)

    def test_buying_exactly_the_available_amount(self):
        price = self.service.quote_purchase(ORG, 1000)
        self.service.buy_tokens(ORG, BUYER, 1000, price)
        org = get_organization(ORG)
        self.assertEqual(org.tokens_available, 0)
        self.assertEqual(org.tokens_sold, 1000)

    def test_buying_more_than_available_fails(self):
        price = self.service.quote_purchase(ORG, 1001)
        with self.assertRaises(InsufficientAvailabilityError):
            self.service.buy_tokens(ORG, BUYER, 1001, price)
        self.assertEqual(get_organization(ORG).tokens_available, 1000)

    def test_zero_amount_fails(self):
        with self.assertRaises(ZeroAmountError):
            self.service.buy_tokens(ORG, BUYER, 0, 0)

    def test_unregistered_organization_fails(self):
        with self.assertRaises(OrganizationNotFoundError):
            self.service.buy_tokens("org-missing", BUYER, 1, 10_000)

    def test_fixed_price_purchase(self):
        self.service.register_organization("org-flat", FIXED_PRICE, 50)
        self.service.set_price("org-flat", "org-flat", 250_000)
        purchase = self.service.buy_tokens("org-flat", BUYER, 4, 1_000_000)
        self.assertEqual(purchase.total_price, 1_000_000)


class PayoutAtomicityTests(TestCase):
    def setUp(self):
        self.ledger = DatabaseLedger()
        self.failing_sink = MagicMock()
        self.failing_sink.send.return_value = False
        self.service = SaleService(ledger=self.ledger, payout_sink=self.failing_sink)
        self.service.register_organization(ORG, FIXED_QUANTITY, 1000)

    def test_failed_payout_rolls_back_everything(self):
        with self.assertRaises(PayoutFailedError):
            self.service.buy_tokens(ORG, BUYER, 3, self.service.quote_purchase(ORG, 3))

        self.failing_sink.send.assert_called_once_with(ORG, 33_000)
        org = get_organization(ORG)
        self.assertEqual((org.tokens_available, org.tokens_sold), (1000, 0))
        self.assertEqual(self.ledger.balance_of(BUYER, org.token_id), 0)
        self.assertEqual(self.ledger.balance_of(treasury_address(), org.token_id), 1000)
        self.assertFalse(TokenPurchase.objects.exists())
        self.assertFalse(is_locked(f"sale:{ORG}"))

    def test_payout_callback_cannot_reenter_buy(self):
        service = SaleService(ledger=self.ledger)

        class ReenteringSink:
            def send(sink_self, recipient, value):
                return service.buy_tokens(ORG, "attacker", 1, service.quote_purchase(ORG, 1)) is not None

        service.payout_sink = ReenteringSink()
        with self.assertRaises(ReentrancyError):
            service.buy_tokens(ORG, BUYER, 1, 10_000)

        org = get_organization(ORG)
        self.assertEqual(org.tokens_sold, 0)
        self.assertEqual(self.ledger.balance_of("attacker", org.token_id), 0)
        self.assertFalse(is_locked(f"sale:{ORG}"))


class AdminOperationsTests(TestCase):
    def setUp(self):
        self.ledger = DatabaseLedger()
        self.service = SaleService(ledger=self.ledger)
        self.service.register_organization("org-flat", FIXED_PRICE, 100)
        self.service.register_organization(ORG, FIXED_QUANTITY, 1000)

    def test_set_price_requires_admin(self):
        with self.assertRaises(NotAdminError):
            self.service.set_price("org-flat", "stranger", 5)
        self.assertEqual(get_organization("org-flat").price_per_token, 0)

    def test_granted_admin_can_set_price(self):
        self.service.grant_admin("org-flat", "org-flat", "ops-admin")
        snapshot = self.service.set_price("org-flat", "ops-admin", 42)
        self.assertEqual(snapshot.price_per_token, 42)

    def test_set_price_only_for_fixed_price(self):
        with self.assertRaises(SaleModeError):
            self.service.set_price(ORG, ORG, 5)

    def test_adjust_available_mints_and_burns_treasury(self):
        snapshot = self.service.adjust_available(ORG, ORG, 500)
        self.assertEqual(snapshot.tokens_available, 1500)
        self.assertEqual(self.ledger.balance_of(treasury_address(), snapshot.token_id), 1500)

        snapshot = self.service.adjust_available(ORG, ORG, -200)
        self.assertEqual(snapshot.tokens_available, 1300)
        self.assertEqual(self.ledger.balance_of(treasury_address(), snapshot.token_id), 1300)

    def test_adjust_available_changes_total_supply(self):
        self.service.buy_tokens(ORG, BUYER, 10, self.service.quote_purchase(ORG, 10))
        snapshot = self.service.adjust_available(ORG, ORG, -90)
        self.assertEqual(snapshot.tokens_available + snapshot.tokens_sold, 910)

    def test_cannot_burn_more_than_available(self):
        with self.assertRaises(InsufficientAvailabilityError):
            self.service.adjust_available(ORG, ORG, -1001)
        self.assertEqual(get_organization(ORG).tokens_available, 1000)

    def test_adjust_available_keeps_total_supply_representable(self):
        self.service.register_organization("org-big", FIXED_QUANTITY, MAX_AMOUNT - 10)
        self.service.buy_tokens("org-big", BUYER, 10, self.service.quote_purchase("org-big", 10))

        with self.assertRaises(ArithmeticOverflowError):
            self.service.adjust_available("org-big", "org-big", 15)
        self.assertEqual(get_organization("org-big").tokens_available, MAX_AMOUNT - 20)

        snapshot = self.service.adjust_available("org-big", "org-big", 10)
        self.assertEqual(snapshot.tokens_available + snapshot.tokens_sold, MAX_AMOUNT)

    def test_adjust_available_rules(self):
        with self.assertRaises(SaleModeError):
            self.service.adjust_available("org-flat", "org-flat", 10)
        with self.assertRaises(NotAdminError):
            self.service.adjust_available(ORG, "stranger", 10)
        with self.assertRaises(ZeroAmountError):
            self.service.adjust_available(ORG, ORG, 0)

    def test_injected_access_gate_decides_admin(self):
        gate = MagicMock()
        gate.is_admin.return_value = True
        service = SaleService(ledger=self.ledger, access_gate=gate)
        service.set_price("org-flat", "anyone", 7)
        gate.is_admin.assert_called_once()
        self.assertEqual(get_organization("org-flat").price_per_token, 7)


class TreasuryAddressTests(TestCase):
    def setUp(self):
        self.ledger = DatabaseLedger()
        self.service = SaleService(ledger=self.ledger)
        self.service.register_organization(ORG, FIXED_QUANTITY, 1000)
        self.treasury = treasury_address()

    def test_treasury_cannot_register(self):
        with self.assertRaises(ReservedAddressError):
            self.service.register_organization(self.treasury, FIXED_QUANTITY, 10)
        with self.assertRaises(ReservedAddressError):
            self.service.register_organization("org-other", FIXED_QUANTITY, 10, payout_address=self.treasury)
        self.assertEqual(Organization.objects.count(), 1)

    def test_treasury_cannot_be_granted_admin(self):
        with self.assertRaises(ReservedAddressError):
            self.service.grant_admin(ORG, ORG, self.treasury)
        with self.assertRaises(NotAdminError):
            self.service.adjust_available(ORG, self.treasury, -100)

    def test_treasury_cannot_buy(self):
        with self.assertRaises(ReservedAddressError):
            self.service.buy_tokens(ORG, self.treasury, 5, self.service.quote_purchase(ORG, 5))

        org = get_organization(ORG)
        self.assertEqual((org.tokens_available, org.tokens_sold), (1000, 0))
        self.assertEqual(self.ledger.balance_of(self.treasury, org.token_id), 1000)
        self.assertFalse(TokenPurchase.objects.exists())
