from django.test import TestCase

from ledger.constants import MAX_AMOUNT
from ledger.models import Payout, TokenBalance
from ledger.services import DatabaseLedger, DatabasePayoutSink
from organizations.exceptions import ArithmeticOverflowError, InsufficientBalanceError, ZeroAmountError


class DatabaseLedgerTests(TestCase):
    def setUp(self):
        self.ledger = DatabaseLedger()

    def test_unknown_holder_has_zero_balance(self):
        self.assertEqual(self.ledger.balance_of("nobody", 1), 0)

    def test_mint_burn_transfer(self):
        self.ledger.mint("treasury", 1, 100)
        self.ledger.transfer("treasury", "alice", 1, 30)
        self.ledger.burn("alice", 1, 10)

        self.assertEqual(self.ledger.balance_of("treasury", 1), 70)
        self.assertEqual(self.ledger.balance_of("alice", 1), 20)

    def test_balances_are_scoped_per_token(self):
        self.ledger.mint("alice", 1, 5)
        self.ledger.mint("alice", 2, 7)
        self.assertEqual(self.ledger.balance_of("alice", 1), 5)
        self.assertEqual(self.ledger.balance_of("alice", 2), 7)
        self.assertEqual(TokenBalance.objects.filter(holder="alice").count(), 2)

    def test_cannot_burn_or_transfer_more_than_held(self):
        self.ledger.mint("alice", 1, 5)
        with self.assertRaises(InsufficientBalanceError):
            self.ledger.burn("alice", 1, 6)
        with self.assertRaises(InsufficientBalanceError):
            self.ledger.transfer("alice", "bob", 1, 6)
        self.assertEqual(self.ledger.balance_of("alice", 1), 5)
        self.assertEqual(self.ledger.balance_of("bob", 1), 0)

    def test_amount_must_be_positive(self):
        with self.assertRaises(ZeroAmountError):
            self.ledger.mint("alice", 1, 0)
        with self.assertRaises(ZeroAmountError):
            self.ledger.transfer("alice", "bob", 1, -1)

    def test_mint_overflow(self):
        self.ledger.mint("alice", 1, MAX_AMOUNT)
        with self.assertRaises(ArithmeticOverflowError):
            self.ledger.mint("alice", 1, 1)

    def test_self_transfer_keeps_balance(self):
        self.ledger.mint("alice", 1, 5)
        self.ledger.transfer("alice", "alice", 1, 5)
        self.assertEqual(self.ledger.balance_of("alice", 1), 5)


class DatabasePayoutSinkTests(TestCase):
    def test_records_payout(self):
        self.assertTrue(DatabasePayoutSink().send("vault", 1_500_000))
        payout = Payout.objects.get()
        self.assertEqual((payout.recipient, payout.value), ("vault", 1_500_000))

    def test_zero_value_is_a_no_op(self):
        self.assertTrue(DatabasePayoutSink().send("vault", 0))
        self.assertFalse(Payout.objects.exists())

    def test_out_of_range_value_fails(self):
        self.assertFalse(DatabasePayoutSink().send("vault", -1))
        self.assertFalse(DatabasePayoutSink().send("vault", MAX_AMOUNT + 1))
