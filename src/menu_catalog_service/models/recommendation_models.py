"""Models for AI-assisted endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from menu_catalog_service.models.menu_models import MenuItem


class RecommendationRequest(BaseModel):
    """Free-text user preference to recommend menu items for."""

    preference: str = Field(..., min_length=1, description="What the guest is in the mood for")

    @field_validator("preference")
    @classmethod
    def validate_preference(cls, v: str) -> str:
        """Reject whitespace-only preferences."""
        if not v.strip():
            raise ValueError("preference must not be blank")
        return v


class GenerateDescriptionRequest(BaseModel):
    """Input for generating a menu description."""

    name: str = Field(..., min_length=1)
    ingredients: list[str] = Field(default_factory=list)


class RawSuggestion(BaseModel):
    """One entry of the AI's suggestion array.

    Untrusted: the name may not exist in the catalog. Missing fields default
    to empty strings, wrongly typed fields are rejected.
    """

    model_config = ConfigDict(strict=True)

    menu_name: str = ""
    reason: str = ""


class Recommendation(BaseModel):
    """A suggestion matched to a live menu item."""

    menu: MenuItem
    reason: str
