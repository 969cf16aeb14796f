"""Marketing campaign tracker: monthly sales CSV import and derived metrics."""

__version__ = "0.1.0"
