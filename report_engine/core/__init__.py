"""
Core infrastructure for the report engine: configuration, the connection
pool, the record store interface and FastAPI dependencies.
"""

from report_engine.core.config import Settings, get_settings
from report_engine.core.exceptions import ReportEngineError, UpstreamFetchFailure
from report_engine.core.record_store import PostgresRecordStore, RecordStore

__all__ = [
    "Settings",
    "get_settings",
    "ReportEngineError",
    "UpstreamFetchFailure",
    "PostgresRecordStore",
    "RecordStore",
]
