"""API route modules."""
from certprep.routes import attempts, auth, dashboard, goals, history, tests

__all__ = ["attempts", "auth", "dashboard", "goals", "history", "tests"]
