"""Rule-based decision engine for business events."""

__version__ = "0.1.0"
