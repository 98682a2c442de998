from django.core.management.base import BaseCommand, CommandError

from core_backend.exceptions import LedgerError
from menu.models import Combo
from orders.services import OrderPricingService


class Command(BaseCommand):
    help = "Recompute combo prices from the current catalog and report savings and margins."

    def add_arguments(self, parser):
        parser.add_argument(
            "combo_ids",
            nargs="*",
            type=int,
            help="Combos to audit. Defaults to every combo that is not deleted.",
        )
        parser.add_argument(
            "--only-flagged",
            action="store_true",
            help="Only show combos that are priced above their components or not discountable.",
        )

    def handle(self, *args, **options):
        combo_ids = options["combo_ids"] or list(
            Combo.objects.filter(is_deleted=False).order_by("name").values_list("id", flat=True)
        )
        if not combo_ids:
            self.stdout.write(self.style.WARNING("No combos to audit."))
            return

        flagged = 0
        for combo_id in combo_ids:
            try:
                breakdown = OrderPricingService.compute_combo_price(combo_id)
            except LedgerError as e:
                raise CommandError(f"Combo {combo_id}: {e.message}")

            is_flagged = breakdown.savings < 0 or not breakdown.is_discountable
            flagged += int(is_flagged)
            if options["only_flagged"] and not is_flagged:
                continue

            style = self.style.WARNING if is_flagged else self.style.SUCCESS
            self.stdout.write(style(
                f"{breakdown.name} (#{breakdown.combo_id}): price {breakdown.computed_price}, "
                f"components {breakdown.components_total}, savings {breakdown.savings}"
                f"{'' if breakdown.is_discountable else ', not discountable'}"
            ))
            for component in breakdown.components:
                availability = "" if component.is_available else " [unavailable]"
                self.stdout.write(
                    f"    {component.quantity} x {component.name} @ {component.unit_price} = "
                    f"{component.line_total}{availability}"
                )

        self.stdout.write(f"Audited {len(combo_ids)} combos, {flagged} flagged.")
