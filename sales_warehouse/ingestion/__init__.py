"""
Data Ingestion Module
"""
from .bulk_loader import BulkLoader, LoadResult, LoadStatus, default_sources, load_warehouse
from .sources import CsvOptions, DataSource, FileSource, FrameSource, MalformedSourceError, StreamSource

__all__ = [
    "BulkLoader",
    "LoadResult",
    "LoadStatus",
    "default_sources",
    "load_warehouse",
    "CsvOptions",
    "DataSource",
    "FileSource",
    "FrameSource",
    "MalformedSourceError",
    "StreamSource",
]
