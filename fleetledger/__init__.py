"""Mini README: Core package initializer for the Fleet Ledger service.

Fleet Ledger records fuel entries, trucks, creditor expenses and invoices for
a trucking operation behind an authenticated, idle-limited session. Sub
packages hold the record store adapters, the session guard, and the domain
services. The web interface lives in ``fleetledger.interface``.
"""

from .logging_utils import get_logger

__all__ = ["get_logger"]
