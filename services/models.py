"""Records passed between the extraction, storage and retrieval services."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

AS_NEEDED = "Vừa đủ"


@dataclass(frozen=True)
class Ingredient:
    name: str
    quantity: str = AS_NEEDED

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "quantity": self.quantity}


@dataclass(frozen=True)
class Step:
    """One cooking step; ``number`` is kept exactly as printed in the source."""

    number: int
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"number": self.number, "text": self.text}


@dataclass(frozen=True)
class ExtractedRecord:
    """A recipe recovered from one block of cookbook text."""

    title: str
    description: str
    prep_time: str
    cook_time: str
    servings: str
    ingredients: tuple[Ingredient, ...]
    steps: tuple[Step, ...]
    categories: frozenset[str] = field(default_factory=frozenset)

    @property
    def dish_name(self) -> str:
        return self.title

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "prepTime": self.prep_time,
            "cookTime": self.cook_time,
            "servings": self.servings,
            "ingredients": [ingredient.to_dict() for ingredient in self.ingredients],
            "steps": [step.to_dict() for step in self.steps],
            "categories": sorted(self.categories),
        }


@dataclass(frozen=True)
class SimilarityMatch:
    """A single hit from the similarity index. Lower score means closer."""

    identity: str
    content: str
    metadata: dict[str, Any]
    score: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SimilarityMatch":
        return cls(
            identity=str(data["identity"]),
            content=str(data.get("content") or ""),
            metadata=dict(data.get("metadata") or {}),
            score=float(data["score"]),
        )


@dataclass(frozen=True)
class RetrievalResult:
    matches: tuple[SimilarityMatch, ...]
    queries_used: tuple[str, ...]


@dataclass(frozen=True)
class RecipeContext:
    """Grounding material handed to the recipe generation step."""

    context: str
    recipes_found: int
    queries_used: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "context": self.context,
            "recipesFound": self.recipes_found,
            "queriesUsed": list(self.queries_used),
        }


@dataclass
class ParseReport:
    records: list[ExtractedRecord]
    blocks_found: int
    rejected: int


@dataclass
class ImportSummary:
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "errors": self.errors,
            "total": self.total,
        }
