from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.utils import timezone

from ledger.services import DatabaseLedger
from organizations.models import OrganizationAdmin
from organizations.services import SaleService, get_organization, treasury_address
from votations.models import Votation
from votations.services import VotationService

ORG = "org-cmd"


class RegisterOrganizationCommandTests(TestCase):
    def test_registers_with_price_and_admins(self):
        out = StringIO()
        call_command(
            "register_organization", ORG,
            "--mode", "fixed_price", "--supply", "500", "--price", "250000",
            "--admin", "ops-1", "--admin", "ops-2",
            stdout=out,
        )
        org = get_organization(ORG)
        self.assertEqual(org.price_per_token, 250_000)
        self.assertEqual(DatabaseLedger().balance_of(treasury_address(), org.token_id), 500)
        self.assertEqual(
            sorted(OrganizationAdmin.objects.values_list('address', flat=True)),
            ["ops-1", "ops-2"],
        )
        self.assertIn("token #1", out.getvalue())

    def test_duplicate_registration_is_a_command_error(self):
        call_command("register_organization", ORG, "--supply", "5", stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command("register_organization", ORG, "--supply", "5", stdout=StringIO())


class FinalizeVotationsCommandTests(TestCase):
    def setUp(self):
        sale = SaleService()
        sale.register_organization(ORG, "fixed_quantity", 100)
        sale.buy_tokens(ORG, "alice", 5, sale.quote_purchase(ORG, 5))
        self.engine = VotationService()
        past = timezone.now() - timedelta(days=8)

        passing = self.engine.propose(ORG, "alice", "Passes", ["For", "Against"], 3)
        self.engine.approve(ORG, passing.votation_id, ORG, now=past)
        self.engine.vote(ORG, passing.votation_id, "alice", 0, 3, now=past + timedelta(hours=1))

        failing = self.engine.propose(ORG, "alice", "Misses quorum", ["For", "Against"], 50)
        self.engine.approve(ORG, failing.votation_id, ORG, now=past)

        still_open = self.engine.propose(ORG, "alice", "Still open", ["For", "Against"], 1)
        self.engine.approve(ORG, still_open.votation_id, ORG)

    def states(self):
        return dict(Votation.objects.values_list('topic', 'state'))

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command("finalize_votations", "--dry-run", stdout=out)
        self.assertIn("[dry-run]", out.getvalue())
        self.assertEqual(set(self.states().values()), {Votation.STATE_APPROVED})

    def test_finalizes_expired_votations_only(self):
        out = StringIO()
        call_command("finalize_votations", stdout=out)
        self.assertEqual(self.states(), {
            "Passes": Votation.STATE_FINALIZED,
            "Misses quorum": Votation.STATE_REJECTED,
            "Still open": Votation.STATE_APPROVED,
        })
        self.assertIn("1 finalized, 1 rejected", out.getvalue())
