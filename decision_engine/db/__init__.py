"""Database client for the rule and recommendation stores."""

from decision_engine.db.turso import TursoClient

__all__ = ["TursoClient"]
