from .entity_store import SQLAlchemyEntityStore

__all__ = ["SQLAlchemyEntityStore"]
