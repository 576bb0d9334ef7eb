"""Connectors package — dataset sources."""
from finboard.connectors.base import BaseConnector
from finboard.connectors.files import DataDirectoryConnector

__all__ = [
    "BaseConnector",
    "DataDirectoryConnector",
]
