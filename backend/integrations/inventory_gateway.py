"""
InventoryGateway: best-effort HTTP adapter for the inventory service.

Transport outcomes are explicit: ``Ok(value)`` when the service answered,
``Unreachable(reason)`` when it did not. The fail-open policy for
availability checks lives in ``is_available`` and nowhere else.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional, Union
from urllib.parse import urljoin

import requests

from core_backend.config import ledger_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    value: bool


@dataclass(frozen=True)
class Unreachable:
    reason: str


GatewayResult = Union[Ok, Unreachable]


class InventoryGateway:
    """
    Client for the inventory collaborator's sku endpoints.
    """

    AVAILABILITY_PATH = "api/inventory/availability/check-by-sku"
    ADJUST_PATH = "api/inventory/items/adjust-by-sku"
    DEDUCTION_SOURCE = "customer_order"

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, session=None):
        self.base_url = base_url or ledger_settings.inventory_api_url
        self.timeout = timeout if timeout is not None else ledger_settings.inventory_timeout
        self.session = session or requests.Session()

    def _post(self, path: str, payload) -> Union[dict, Unreachable]:
        if not self.base_url:
            return Unreachable("inventory service is not configured")

        url = urljoin(self.base_url, path)
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.Timeout:
            return Unreachable(f"timed out after {self.timeout}s")
        except requests.RequestException as e:
            return Unreachable(str(e))

        try:
            data = response.json()
        except ValueError:
            return Unreachable("response was not JSON")
        if not isinstance(data, dict):
            return Unreachable("unexpected response payload")
        return data

    def check_availability(self, lines: Iterable) -> GatewayResult:
        """
        Ask whether every (sku, quantity) line can be fulfilled.

        ``lines`` holds objects with ``sku`` and ``quantity`` attributes.
        """
        payload = [{"sku": line.sku, "quantity": line.quantity} for line in lines]
        if not payload:
            return Ok(True)

        data = self._post(self.AVAILABILITY_PATH, payload)
        if isinstance(data, Unreachable):
            return data
        ok = data.get("ok")
        if not isinstance(ok, bool):
            return Unreachable("availability response had no boolean 'ok'")
        return Ok(ok)

    def is_available(self, lines: Iterable) -> bool:
        """Fail-open: an unreachable inventory service never blocks a sale."""
        lines = list(lines)
        result = self.check_availability(lines)
        if isinstance(result, Unreachable):
            skus = ", ".join(line.sku for line in lines)
            logger.warning(f"Inventory check unreachable ({result.reason}); assuming available for {skus}")
            return True
        return result.value

    def adjust(self, sku: str, quantity: int, unit_cost: Optional[Decimal], source_ref: str, notes: str = "") -> GatewayResult:
        payload = {
            "sku": sku,
            "delta": -int(quantity),
            "unitCost": str(unit_cost) if unit_cost is not None else None,
            "source": self.DEDUCTION_SOURCE,
            "sourceRef": source_ref,
            "notes": notes,
        }
        data = self._post(self.ADJUST_PATH, payload)
        if isinstance(data, Unreachable):
            return data
        return Ok(True)

    def deduct(self, order_id, lines: Iterable) -> List[GatewayResult]:
        """
        Fire-and-continue stock deduction for an order. Failures are logged
        with order id and sku for out-of-band reconciliation, never raised.
        """
        results = []
        for line in lines:
            result = self.adjust(
                sku=line.sku,
                quantity=line.quantity,
                unit_cost=line.unit_cost,
                source_ref=str(order_id),
                notes=f"Order {order_id}",
            )
            if isinstance(result, Unreachable):
                logger.warning(
                    f"Inventory deduction failed for order {order_id}, sku {line.sku} "
                    f"x{line.quantity}: {result.reason}"
                )
            results.append(result)
        return results
