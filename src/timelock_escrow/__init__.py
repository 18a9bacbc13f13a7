"""Time-locked token escrow: a buyer settles once, the seller withdraws after unlock."""

__version__ = "0.1.0"
