"""Management command: link free-text inventory rows to catalog items."""
import logging

from django.core.management.base import BaseCommand
from django.db import DatabaseError

from apps.catalog.exceptions import CatalogError
from apps.catalog.repository import link_inventory_item
from apps.inventory.models import InventoryItem

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Create-or-get catalog entries for unlinked inventory items and link them."

    def add_arguments(self, parser):
        parser.add_argument(
            "--owner",
            type=str,
            default=None,
            help="Only link items owned by this username",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=0,
            help="Max items to process (0 = unlimited)",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List what would be linked without writing",
        )

    def handle(self, *args, **options):
        qs = InventoryItem.objects.filter(catalog_item__isnull=True).select_related("owner")
        if options["owner"]:
            qs = qs.filter(owner__username=options["owner"])
        qs = qs.order_by("created_at")
        if options["limit"]:
            qs = qs[:options["limit"]]

        if options["dry_run"]:
            for inv in qs:
                self.stdout.write(f"  would link: {inv.name} ({inv.manufacturer or '-'})")
            return

        created = existing = errors = 0
        for inv in qs:
            try:
                item, was_existing = link_inventory_item(inv, user=inv.owner)
            except (CatalogError, DatabaseError) as e:
                errors += 1
                logger.warning("Could not link inventory item %s: %s", inv.pk, e)
                self.stderr.write(f"  ERROR linking {inv.pk}: {e}")
                continue
            if was_existing:
                existing += 1
            else:
                created += 1
            self.stdout.write(f"  {inv.name} -> {item.canonical_key}")

        self.stdout.write(
            self.style.SUCCESS(
                f"\nDone: {created} new catalog items, {existing} linked to existing, "
                f"{errors} errors"
            )
        )
