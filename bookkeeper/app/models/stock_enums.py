"""
Stock enumerations.
"""

import enum


class StockStatus(str, enum.Enum):
    """Stock pipeline status enumeration."""
    BOOKED = "BOOKED"  # Ordered from supplier
    ON_WAY = "ON_WAY"  # Dispatched, in transit
    UNLOADED = "UNLOADED"  # Arrived at warehouse
    AVAILABLE = "AVAILABLE"  # Ready to sell
    SOLD = "SOLD"  # Fully sold
