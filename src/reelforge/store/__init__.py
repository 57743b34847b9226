"""Persistence for project records and binary artifacts."""

from reelforge.store.base import ProjectRepository
from reelforge.store.blobs import LocalBlobStore
from reelforge.store.fallback import FallbackProjectRepository
from reelforge.store.local import LocalProjectRepository
from reelforge.store.supabase import SupabaseProjectRepository

__all__ = [
    "FallbackProjectRepository",
    "LocalBlobStore",
    "LocalProjectRepository",
    "ProjectRepository",
    "SupabaseProjectRepository",
]
