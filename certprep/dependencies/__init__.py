"""FastAPI dependencies."""
from certprep.dependencies.auth import CurrentUser, Db, get_current_user

__all__ = ["CurrentUser", "Db", "get_current_user"]
