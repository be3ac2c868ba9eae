"""Two-sided swipe matching engine for companies and agents."""

__version__ = "0.1.0"
