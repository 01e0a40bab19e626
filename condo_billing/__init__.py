"""Monthly billing engine for residential condominiums."""

__version__ = "0.1.0"
