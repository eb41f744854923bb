"""Portfolio tracker for Brazilian real-estate investment funds (FIIs)."""

__version__ = "0.1.0"
