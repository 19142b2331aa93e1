from .models import (
    DEFAULT_PLACEHOLDER_IMAGE,
    BulkError,
    BulkJobResult,
    DraftRecord,
    EnhancedContent,
    FinalizedRecord,
    HistoryEntry,
    JobKind,
    MaterializedImage,
    ScrapePolicy,
)

__all__ = [
    "DEFAULT_PLACEHOLDER_IMAGE",
    "BulkError",
    "BulkJobResult",
    "DraftRecord",
    "EnhancedContent",
    "FinalizedRecord",
    "HistoryEntry",
    "JobKind",
    "MaterializedImage",
    "ScrapePolicy",
]
