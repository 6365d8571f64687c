"""Share card model produced by the poet agent."""

import base64

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PoeticArtifact(BaseModel):
    """A short poem plus an illustration for the share card.

    The image is either inline bytes from the image model or, when the model
    returned no image, a remote fallback URL. Exactly one of the two is set.
    """

    model_config = ConfigDict(frozen=True)

    poem: str = Field(description="Short poem text")
    image_data: bytes | None = Field(default=None, description="Inline image bytes")
    image_mime_type: str = Field(default="image/png", description="MIME type of image_data")
    image_url: str | None = Field(default=None, description="Fallback image URL")
    poem_is_fallback: bool = Field(default=False, description="Poem came from the template")

    @model_validator(mode="after")
    def _one_image_reference(self) -> "PoeticArtifact":
        if (self.image_data is None) == (self.image_url is None):
            raise ValueError("exactly one of image_data or image_url must be set")
        return self

    @property
    def is_fallback_image(self) -> bool:
        return self.image_data is None

    @property
    def image_ref(self) -> str:
        """Resolvable image reference: a data URI or the fallback URL."""
        if self.image_data is not None:
            encoded = base64.b64encode(self.image_data).decode("ascii")
            return f"data:{self.image_mime_type};base64,{encoded}"
        return self.image_url or ""

    def __str__(self) -> str:
        kind = "fallback" if self.is_fallback_image else "inline"
        return f"PoeticArtifact(image={kind}, poem_lines={len(self.poem.splitlines())})"
