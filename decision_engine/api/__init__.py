"""HTTP adapter for the decision engine."""
