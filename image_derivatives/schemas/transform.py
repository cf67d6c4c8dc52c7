"""Pydantic schema for on-demand transform parameters."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TransformParams(BaseModel):
    """Resize and resampling instructions taken from the fetch query string.

    Every field is optional. Missing dimensions fall back to the source
    dimensions, and an unknown ``sampling`` name falls back to
    nearest-neighbor when the transform runs.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {"w": 100},
                {"w": 100, "h": 100, "stretch": True, "sampling": "lanczos3"},
            ]
        }
    )

    w: Optional[int] = Field(
        None,
        gt=0,
        description="Target width in pixels (defaults to the source width)",
        examples=[100, 640]
    )

    h: Optional[int] = Field(
        None,
        gt=0,
        description="Target height in pixels (defaults to the source height)",
        examples=[100, 480]
    )

    stretch: bool = Field(
        False,
        description="Resize exactly to w x h instead of fitting inside the box"
    )

    sampling: Optional[str] = Field(
        None,
        description="Resampling filter: triangle, catmullrom, gaussian or lanczos3. "
                    "Anything else means nearest-neighbor.",
        examples=["lanczos3"]
    )
