"""
API module for the gradebook REST API and the spreadsheet endpoint server.
"""

from .rest_api import ScorebookRestAPI
from .endpoint_app import SpreadsheetEndpointAPI

__all__ = [
    "ScorebookRestAPI",
    "SpreadsheetEndpointAPI",
]
