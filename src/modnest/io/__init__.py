"""IO layer: dry-run aware filesystem primitives and the consolidation record."""
from .file_ops import FileOperations
from .record import ConsolidationRecord, is_recordable

__all__ = ["FileOperations", "ConsolidationRecord", "is_recordable"]
