"""SQLAlchemy Base class for all models."""
from leave_engine.models.base import Base


def import_models():
    """Import all models to register them with SQLAlchemy."""
    import leave_engine.models  # noqa: F401


__all__ = ["Base", "import_models"]
