"""
finboard — financial metrics for a subscription software business.

Invoices, contracts and the bank ledger in; ARR, burn, runway, forecasts
and management reports out.
"""

__version__ = "0.1.0"
__all__ = ["DataDirectoryConnector", "FinboardConfig"]

from finboard.config import FinboardConfig  # noqa: E402
from finboard.connectors.files import DataDirectoryConnector  # noqa: E402
