"""Inventory, sales and profit tracking for small businesses, stored in SQLite."""

__version__ = "0.1.0"