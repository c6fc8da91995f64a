# symptomlog/models/__init__.py
from symptomlog.db.session import Base

# Import model modules so SQLAlchemy registers all mappers.
from . import kv_record  # noqa: F401
from .entry import MAX_SUGGESTIONS, Severity, SymptomEntry

__all__ = ["Base", "MAX_SUGGESTIONS", "Severity", "SymptomEntry"]
