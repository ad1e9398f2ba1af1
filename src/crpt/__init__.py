"""
CRPT Client
Rate-limited client for the document registration API.
"""

from crpt.client import AsyncCrptClient, CrptClient
from crpt.errors import (
    AdmissionCancelledError,
    ConfigurationError,
    CrptError,
    SubmissionValidationError,
)
from crpt.models import Description, Document, DocumentRequest, Product
from crpt.quota import AsyncSlidingWindowLimiter, LimiterState, SlidingWindowLimiter

__version__ = "0.1.0"
__all__ = [
    "AdmissionCancelledError",
    "AsyncCrptClient",
    "AsyncSlidingWindowLimiter",
    "ConfigurationError",
    "CrptClient",
    "CrptError",
    "Description",
    "Document",
    "DocumentRequest",
    "LimiterState",
    "Product",
    "SlidingWindowLimiter",
    "SubmissionValidationError",
]
