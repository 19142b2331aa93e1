# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_draft, make_policy
"""

from .utils import make_draft, make_finalized, make_policy, make_raw_record

__all__ = ["make_draft", "make_finalized", "make_policy", "make_raw_record"]
