from .files import FileStore
from .routes import RouteDispatcher

__all__ = ["FileStore", "RouteDispatcher"]
