import logging

from django.core.management.base import BaseCommand
from django.utils import timezone

from organizations.exceptions import OrgTokenError
from votations.services import VotationService, list_expired_votations

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Finalize every approved votation whose voting window has closed"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List the votations that would be finalized without changing them",
        )
        parser.add_argument(
            "--organization",
            help="Only finalize votations of this organization address",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        now = timezone.now()
        service = VotationService()

        expired = list(list_expired_votations(now, options.get("organization")))
        finalized = 0
        rejected = 0
        failed = 0

        for votation in expired:
            org_address = votation.organization.address
            if dry_run:
                self.stdout.write(
                    f"[dry-run] {org_address} #{votation.votation_id} "
                    f"(for={votation.votes_for} against={votation.votes_against} quorum={votation.quorum})"
                )
                continue
            try:
                result = service.finalize(org_address, votation.votation_id, now=now)
            except OrgTokenError as e:
                # Another caller may have finalized it in the meantime
                failed += 1
                logger.warning("Could not finalize %s #%s: %s", org_address, votation.votation_id, e.message)
                continue
            if result.state == votation.STATE_FINALIZED:
                finalized += 1
            else:
                rejected += 1
            self.stdout.write(f"{org_address} #{votation.votation_id}: {result.state}")

        self.stdout.write(self.style.SUCCESS(
            f"Checked {len(expired)} votations: {finalized} finalized, {rejected} rejected, {failed} skipped"
        ))
