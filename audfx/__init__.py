"""AUD-based exchange rates and history from Open Exchange Rates."""

__version__ = "0.1.0"
