from pydantic import ValidationError


class RecipeError(Exception):
    """Base exception for recipe domain errors."""
    pass


class RecipeValidationError(RecipeError):
    """Raised when recipe input is malformed or incomplete."""

    @classmethod
    def from_pydantic(cls, error: ValidationError) -> "RecipeValidationError":
        problems = []
        for item in error.errors():
            location = ".".join(str(part) for part in item.get("loc", ())) or "input"
            problems.append(f"{location}: {item.get('msg', 'invalid value')}")
        return cls("Invalid recipe: " + "; ".join(problems))


class RecipeNotFoundError(RecipeError):
    """Raised when a referenced recipe id does not exist."""

    def __init__(self, recipe_id: str):
        super().__init__(f"No recipe found with ID: {recipe_id}")
        self.recipe_id = recipe_id


class StoreError(Exception):
    """Raised when the underlying storage medium fails."""
    pass
