"""Match-three puzzle engine with an authoritative move-economy ledger."""

__version__ = "0.1.0"
