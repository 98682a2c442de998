from decimal import Decimal
import logging

from celery import shared_task

from integrations.inventory_gateway import InventoryGateway, Ok
from orders.services.pricing_service import StockLine

logger = logging.getLogger(__name__)


@shared_task
def deduct_order_inventory(order_id, lines):
    """
    Best-effort stock deduction for a committed order.

    ``lines`` is a list of {"sku", "quantity", "unit_cost"} dicts. Failures are
    logged by the gateway and reconciled out of band; nothing is retried here.
    """
    try:
        stock_lines = [
            StockLine(
                sku=line["sku"],
                quantity=int(line["quantity"]),
                unit_cost=Decimal(line["unit_cost"]) if line.get("unit_cost") is not None else None,
            )
            for line in lines
        ]
        results = InventoryGateway().deduct(order_id, stock_lines)
    except Exception as e:
        logger.error(f"Inventory deduction task failed for order {order_id}: {e}")
        return {"status": "failed", "order_id": order_id, "error": str(e)}

    failed = sum(1 for r in results if not isinstance(r, Ok))
    return {
        "status": "completed" if failed == 0 else "partial",
        "order_id": order_id,
        "deducted": len(results) - failed,
        "failed": failed,
    }
