"""Content-addressed blob storage and its lifecycle."""

from .content_index import DELETE_ALL, ContentIndex
from .media_models import BlobComment, BlobEntry, BlobListing, PutResult, SweepReport, TtlSpec
from .reconciler import LifecycleReconciler

__all__ = [
    "DELETE_ALL",
    "BlobComment",
    "BlobEntry",
    "BlobListing",
    "ContentIndex",
    "LifecycleReconciler",
    "PutResult",
    "SweepReport",
    "TtlSpec",
]
