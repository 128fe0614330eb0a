"""
Fulfillment Service — The single public interface for stock and picking.

Usage:
    from pickman import fulfillment, PickingError

    route = fulfillment.create_route(["1001", "1002"])
    fulfillment.scan_shelf(route, "A-01-01")
    fulfillment.scan_barcode(route, "8690000000001", quantity=4)

Parameter convention for ledger operations: (quantity, product, shelf, ...)
Follows natural language: "Receive 50 units of soap on A-01-01"

IMPORTANT: All state-changing methods use atomic transactions with
appropriate locking. See each method's docstring.
"""

from pickman.services.advisory import TransferAdvisory
from pickman.services.ledger import StockLedger
from pickman.services.queries import StockQueries
from pickman.services.returns import StockReturns
from pickman.services.routes import RouteAggregator
from pickman.services.scanning import ScanResolver


class Fulfillment(
    StockQueries,
    StockLedger,
    TransferAdvisory,
    RouteAggregator,
    ScanResolver,
    StockReturns,
):
    """
    Single interface for fulfillment operations.

    Reservation counters (StockReservations) are not exposed: they
    move only with routes and scans.
    """
