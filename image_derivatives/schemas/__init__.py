"""Pydantic schemas for request/response validation."""

from .transform import TransformParams
from .upload import UploadOutcome

__all__ = [
    "TransformParams",
    "UploadOutcome",
]
