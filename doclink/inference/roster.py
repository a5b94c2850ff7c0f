"""Ordered roster of interchangeable model identifiers."""

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

from doclink.models.domain import ModelCandidate

if TYPE_CHECKING:
    from doclink.inference.config import InferenceConfig

DEFAULT_PRIMARY_MODEL = "gemini-3-flash-preview"
DEFAULT_FALLBACK_MODELS = ("gemini-2.0-flash-lite", "gemini-1.5-flash-latest")


class ModelRoster:
    """Immutable, ordered list of model candidates, primary first.

    The roster length bounds the number of attempts made for one logical request.
    """

    __slots__ = ("_candidates",)

    def __init__(self, identifiers: Iterable[str]) -> None:
        # Repeated identifiers would only repeat a rate-limited attempt.
        unique = tuple(dict.fromkeys(identifiers))
        if not unique:
            raise ValueError("Model roster requires at least one model identifier")
        self._candidates = tuple(
            ModelCandidate(identifier=identifier, rank=rank)
            for rank, identifier in enumerate(unique)
        )

    @classmethod
    def of(cls, *identifiers: str) -> "ModelRoster":
        return cls(identifiers)

    @classmethod
    def from_config(cls, config: "InferenceConfig") -> "ModelRoster":
        """Build the chat roster: the configured primary followed by its fallbacks."""
        return cls([config.primary_model, *config.fallback_models])

    def ordered_list(self) -> tuple[ModelCandidate, ...]:
        return self._candidates

    @property
    def primary(self) -> ModelCandidate:
        return self._candidates[0]

    def is_last(self, candidate: ModelCandidate) -> bool:
        return candidate.rank == len(self._candidates) - 1

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self) -> Iterator[ModelCandidate]:
        return iter(self._candidates)

    def __repr__(self) -> str:
        names = ", ".join(c.identifier for c in self._candidates)
        return f"ModelRoster([{names}])"
