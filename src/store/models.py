"""
Recipe data models.

Field names are snake_case in Python and camelCase on the wire, matching
the JSON the mobile app and agents already consume.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def _unique(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class _RecipeFields(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class RecipeInput(_RecipeFields):
    """Fields accepted when saving a new recipe."""

    name: str = Field(min_length=1)
    description: Optional[str] = None
    ingredients: List[str]
    instructions: List[str]
    prep_time: Optional[int] = Field(default=None, ge=0)
    cook_time: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, gt=0)
    cuisine: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    source: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: List[str]) -> List[str]:
        return _unique(value)


class RecipeUpdate(_RecipeFields):
    """
    Partial recipe update.

    Only fields that were supplied with a non-null value are applied; an
    explicit null is treated the same as an omitted field.
    """

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    ingredients: Optional[List[str]] = None
    instructions: Optional[List[str]] = None
    prep_time: Optional[int] = Field(default=None, ge=0)
    cook_time: Optional[int] = Field(default=None, ge=0)
    servings: Optional[int] = Field(default=None, gt=0)
    cuisine: Optional[str] = None
    tags: Optional[List[str]] = None
    source: Optional[str] = None
    image_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            raise ValueError("name must not be blank")
        return value

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _unique(value) if value is not None else None

    def present_fields(self) -> Dict[str, Any]:
        """Return only the fields that should overwrite the stored record."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class Recipe(_RecipeFields):
    """A persisted recipe record."""

    id: str
    name: str
    description: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    prep_time: Optional[int] = None
    cook_time: Optional[int] = None
    servings: Optional[int] = None
    cuisine: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    source: Optional[str] = None
    image_url: Optional[str] = None
    created_at: str
    updated_at: str

    def apply(self, update: RecipeUpdate, updated_at: str) -> "Recipe":
        """Return a copy with the update's present fields merged in."""
        return self.model_copy(
            update={**update.present_fields(), "updated_at": updated_at}
        )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
