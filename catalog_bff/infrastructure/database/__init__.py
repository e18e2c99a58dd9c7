"""
Modulo de base de datos.
Contiene la configuracion de SQLAlchemy y los modelos ORM.
"""
from .session import Base, engine, AsyncSessionLocal, get_db, init_db, close_db

__all__ = [
    "Base",
    "engine",
    "AsyncSessionLocal",
    "get_db",
    "init_db",
    "close_db",
]
