from .service import ExtractionObservability, SessionNotFoundError, calculate_response_confidence
from .store import ExtractionStore, SQLiteExtractionStore, get_extraction_store

__all__ = [
    "ExtractionObservability",
    "ExtractionStore",
    "SQLiteExtractionStore",
    "SessionNotFoundError",
    "calculate_response_confidence",
    "get_extraction_store",
]
