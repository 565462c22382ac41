"""Cart and checkout core of the order-management backend."""

__version__ = "0.1.0"
