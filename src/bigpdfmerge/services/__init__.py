"""
BigPdfMerge - Services Package

Service modules for importing, rendering and exporting PDF pages.
"""

from bigpdfmerge.services.export_pipeline import ExportPipeline, ExportResult
from bigpdfmerge.services.import_service import ImportReport, ImportService, InputFile
from bigpdfmerge.services.merge_session import MergeSession
from bigpdfmerge.services.page_renderer import PageRenderer

__all__ = [
    "ExportPipeline",
    "ExportResult",
    "ImportReport",
    "ImportService",
    "InputFile",
    "MergeSession",
    "PageRenderer",
]
