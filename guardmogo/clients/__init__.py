"""Client modules for storage backends."""

from guardmogo.clients.base import (
    Database,
    RecordNotFoundError,
    StoreError
)

from guardmogo.clients.supabase_client import (
    SupabaseClient,
    SupabaseReportRepository,
    SupabaseNumberRepository,
    SupabaseProfileRepository,
    SupabaseCommentRepository,
    DatabaseManager
)

from guardmogo.clients.memory_store import InMemoryDatabase

__all__ = [
    "Database",
    "RecordNotFoundError",
    "StoreError",
    "SupabaseClient",
    "SupabaseReportRepository",
    "SupabaseNumberRepository",
    "SupabaseProfileRepository",
    "SupabaseCommentRepository",
    "DatabaseManager",
    "InMemoryDatabase"
]
