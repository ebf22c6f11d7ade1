from pathlib import Path

from common.choices import ImportMode
from common.exceptions import StockError
from django.core.management.base import BaseCommand, CommandError
from inventory.imports import import_stock_csv


class Command(BaseCommand):
    help = "Import stock levels from a CSV file (mode add books quantities in, mode set books the difference)."

    def add_arguments(self, parser):
        parser.add_argument("path", help="CSV file to import")
        parser.add_argument("--mode", choices=ImportMode.values, default=ImportMode.ADD)
        parser.add_argument("--created-by", dest="created_by", default="import_stock_csv")

    def handle(self, *args, **options):
        path = Path(options["path"])
        if not path.is_file():
            raise CommandError(f"File not found: {path}")
        try:
            result = import_stock_csv(
                path.read_text(encoding="utf-8-sig"), mode=options["mode"], created_by=options["created_by"]
            )
        except StockError as exc:
            raise CommandError(exc.message or str(exc))

        for error in result["errors"]:
            self.stderr.write(error)
        self.stdout.write(
            self.style.SUCCESS(
                f"Imported {result['imported']} of {result['total']} rows "
                f"({result['created']} new variants, {len(result['errors'])} errors)."
            )
        )
