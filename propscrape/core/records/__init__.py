from .assembler import assemble_record, new_record_id, source_text
from .coerce import coerce_draft, coerce_drafts

__all__ = ["assemble_record", "new_record_id", "source_text", "coerce_draft", "coerce_drafts"]
