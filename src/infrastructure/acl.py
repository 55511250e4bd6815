from typing import Any, Dict, Mapping
from pydantic import ValidationError
from src.domain.models import Idea

class IdeaTranslator:
    """
    Anti-corruption layer that translates raw storage records (database rows,
    JSON documents, API payloads) into Idea instances and back.
    """

    @staticmethod
    def to_domain(raw: Mapping[str, Any]) -> Idea:
        """
        Transforms a raw record into an Idea.

        Args:
            raw (Mapping[str, Any]): Row mapping or decoded JSON object.

        Returns:
            Idea: The domain entity represented by the record.

        Raises:
            ValueError: If the record is missing its id or fails validation.
        """
        if not isinstance(raw, Mapping):
            raise ValueError(f"Idea record must be a mapping, got {type(raw).__name__}.")
        if not raw.get('id'):
            raise ValueError("id is required to build an Idea.")

        try:
            return Idea(
                id=str(raw['id']),
                title=raw.get('title') or '',
                votes=raw.get('votes', 0),
                rating=raw.get('rating', 0.0),
                version=raw.get('version', 0),
            )
        except ValidationError as e:
            raise ValueError(f"Malformed idea record {raw.get('id')!r}: {e}") from e

    @staticmethod
    def to_record(idea: Idea) -> Dict[str, Any]:
        """Flattens an Idea into a JSON/row friendly dict."""
        return {
            'id': idea.id,
            'title': idea.title,
            'votes': idea.votes,
            'rating': idea.rating,
            'version': idea.version,
        }
