"""Column and beam layout engine for structural framing over floor plans."""

__version__ = "0.1.0"
