from .session import engine, get_session, init_db

__all__ = ["engine", "get_session", "init_db"]
