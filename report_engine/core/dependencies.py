"""
FastAPI dependency injection module for the report engine.

Provides reusable dependencies for configuration and record store access so
endpoint handlers stay decoupled from infrastructure. Tests swap the store
out through ``app.dependency_overrides[get_record_store]``.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_record_store: Returns a PostgresRecordStore bound to the settings
- SettingsDep / RecordStoreDep: Annotated aliases for endpoint signatures

Usage:
    @router.get("/content-gaps")
    async def content_gaps(store: RecordStoreDep, settings: SettingsDep):
        return await build_report_view(store, settings=settings)
"""

from typing import Annotated

from fastapi import Depends

from report_engine.core.config import Settings, get_settings
from report_engine.core.record_store import PostgresRecordStore, RecordStore


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    A thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


# =============================================================================
# Record Store Dependency
# =============================================================================

def get_record_store(
    settings: Annotated[Settings, Depends(get_settings_dependency)],
) -> RecordStore:
    """
    Return the record store used by the report endpoints.

    The store is cheap to build; it borrows connections from the shared
    pool for each fetch.
    """
    return PostgresRecordStore(settings)


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(store: RecordStoreDep)
RecordStoreDep = Annotated[RecordStore, Depends(get_record_store)]
