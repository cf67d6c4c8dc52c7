"""Upload-related Pydantic schemas for API responses."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadOutcome(BaseModel):
    """Result of ingesting one part of a multipart upload.

    An empty ``errors`` list means the part was stored as a canonical image.
    The upload endpoint returns one outcome per submitted part, in the order
    the parts were sent.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"filename": "cat.png", "errors": []},
                {"filename": "cat.png", "errors": ["Another file with this name already exists."]},
                {"filename": None, "errors": ["The multi-part form was improperly formatted: "
                                              "A filename was not provided"]},
            ]
        }
    )

    filename: Optional[str] = Field(
        None,
        description="Original filename of the part, including its extension"
    )

    errors: List[str] = Field(
        default_factory=list,
        description="Human-readable reasons the part was rejected"
    )

    @property
    def ok(self) -> bool:
        """Whether the part was stored without errors."""
        return not self.errors

    def with_error(self, message: str) -> "UploadOutcome":
        """Record an error and return the outcome for chaining."""
        self.errors.append(message)
        return self
