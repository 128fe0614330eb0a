"""
Pickman services — modular organization of fulfillment operations.

    from pickman.services import StockLedger, RouteAggregator, ScanResolver
"""

from pickman.services.advisory import TransferAdvisory
from pickman.services.ledger import MovementDraft, StockLedger
from pickman.services.queries import Drift, StockQueries
from pickman.services.reservations import StockReservations
from pickman.services.returns import StockReturns
from pickman.services.routes import RouteAggregator
from pickman.services.scanning import ScanResolver

__all__ = [
    'Drift',
    'MovementDraft',
    'RouteAggregator',
    'ScanResolver',
    'StockLedger',
    'StockQueries',
    'StockReservations',
    'StockReturns',
    'TransferAdvisory',
]
