"""
Orders services package.

- OrderLedgerService: order lifecycle and item mutations (the aggregate root)
- OrderPricingService: line pricing, combo price audits and order totals
- OrderDeliveryService: delivered counters and order delivery state
- OrderAuditService: append-only order log
"""

from .audit_service import OrderAuditService
from .pricing_service import OrderPricingService
from .delivery_service import OrderDeliveryService
from .ledger_service import OrderLedgerService

__all__ = [
    'OrderAuditService',
    'OrderPricingService',
    'OrderDeliveryService',
    'OrderLedgerService',
]
