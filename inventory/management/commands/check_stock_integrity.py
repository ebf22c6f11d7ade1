import logging

from django.core.management.base import BaseCommand, CommandError
from inventory.selectors import find_balance_drift

logger = logging.getLogger("stockledger.inventory")


class Command(BaseCommand):
    help = "Replay the stock ledger and report balances that disagree with it. Never corrects anything."

    def add_arguments(self, parser):
        parser.add_argument("--variant", type=int, default=None, help="Only check this variant id")
        parser.add_argument("--location", type=int, default=None, help="Only check this location id")

    def handle(self, *args, **options):
        drift = find_balance_drift(variant_id=options["variant"], location_id=options["location"])
        if not drift:
            self.stdout.write(self.style.SUCCESS("Ledger and balances agree."))
            return
        for row in drift:
            logger.error("stock.integrity_fault", extra={"event": "stock.integrity_fault", **row})
            self.stdout.write(
                f"variant={row['variant_id']} location={row['location_id']} "
                f"ledger={row['ledger_qty']} cached={row['cached_qty']}"
            )
        raise CommandError(f"Balance drift found for {len(drift)} variant/location pair(s)")
