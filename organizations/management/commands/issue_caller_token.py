from django.core.management.base import BaseCommand, CommandError

from organizations.exceptions import OrgTokenError
from organizations.jwt_context import issue_caller_token


class Command(BaseCommand):
    help = "Issue a signed caller token for an address, for use as 'Authorization: JWT <token>'"

    def add_arguments(self, parser):
        parser.add_argument("address", help="Address the bearer will act as")

    def handle(self, *args, **options):
        try:
            token = issue_caller_token(options["address"])
        except OrgTokenError as e:
            raise CommandError(f"[{e.code}] {e.message}")
        self.stdout.write(token)
