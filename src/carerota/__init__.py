"""Care home staff scheduling: solver, conflict checks and shift swaps."""

__version__ = "0.1.0"
