"""pydbcp: connection acquisition strategies and aggregate failure reporting."""

__version__ = "0.1.0"
