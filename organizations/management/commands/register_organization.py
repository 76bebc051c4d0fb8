from django.core.management.base import BaseCommand, CommandError

from organizations.exceptions import OrgTokenError
from organizations.pricing import FIXED_PRICE, FIXED_QUANTITY
from organizations.services import SaleService


class Command(BaseCommand):
    help = "Register an organization, mint its initial token supply into the treasury and grant admins"

    def add_arguments(self, parser):
        parser.add_argument("address", help="Organization address")
        parser.add_argument(
            "--mode",
            choices=[FIXED_PRICE, FIXED_QUANTITY],
            default=FIXED_QUANTITY,
            help="Sale policy (immutable after registration)",
        )
        parser.add_argument("--supply", type=int, required=True, help="Initial supply minted into the treasury")
        parser.add_argument("--payout-address", help="Address receiving sale proceeds (defaults to the organization)")
        parser.add_argument("--price", type=int, help="Price per token in micro units (fixed price only)")
        parser.add_argument(
            "--admin",
            action="append",
            default=[],
            help="Additional admin address (repeatable)",
        )

    def handle(self, *args, **options):
        address = options["address"]
        service = SaleService()
        try:
            organization = service.register_organization(
                address,
                options["mode"],
                options["supply"],
                options.get("payout_address"),
            )
            if options.get("price") is not None:
                organization = service.set_price(address, address, options["price"])
            for admin_address in options["admin"]:
                service.grant_admin(address, address, admin_address)
        except OrgTokenError as e:
            raise CommandError(f"[{e.code}] {e.message}")

        self.stdout.write(self.style.SUCCESS(
            f"Registered {organization.address} as token #{organization.token_id} "
            f"({organization.sale_mode}, {organization.tokens_available} available)"
        ))
        for admin_address in options["admin"]:
            self.stdout.write(f"  admin: {admin_address}")
