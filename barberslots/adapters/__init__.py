"""
Adapters layer - Schedule stores (hosted database and in-memory mock).
"""

from .mock_store import MockScheduleStore
from .supabase_store import SupabaseScheduleStore

__all__ = ["MockScheduleStore", "SupabaseScheduleStore"]
