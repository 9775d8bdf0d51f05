"""Hazmat KB Pipeline - request orchestration.

Provides:
- ValidationPipeline: shipment, screenshot and SDS flows
- ValidationRequest: stage tracking and cancellation
- ContextBuilder: per-request remote and local context
- DocumentLibrary: adding files to the local document store
"""

from hazmat_pipeline.context import ContextBuilder
from hazmat_pipeline.library import DocumentLibrary
from hazmat_pipeline.request import ValidationRequest
from hazmat_pipeline.service import ValidationPipeline, resolve_api_key
from hazmat_pipeline.shipments import apply_defaults, load_shipment

__version__ = "1.0.0"

__all__ = [
    "ContextBuilder",
    "DocumentLibrary",
    "ValidationRequest",
    "ValidationPipeline",
    "resolve_api_key",
    "apply_defaults",
    "load_shipment",
]
