from abc import ABC, abstractmethod
from typing import List

from src.domain.models import Idea

class IdeaRepository(ABC):
    """
    Storage-independent access to ideas.

    Every implementation reports failures with the same taxonomy, whatever its
    transport:
      - NotFoundError: no idea with the given id.
      - ConflictError: duplicate id on save, or stale version on update.
      - UnavailableError: the store could not be reached.
    No method returns a placeholder in place of a missing record.
    """

    @abstractmethod
    async def find(self, idea_id: str) -> Idea:
        """Loads the idea stored under `idea_id`."""

    @abstractmethod
    async def save(self, idea: Idea) -> None:
        """Creates a new record. Never overwrites an existing one."""

    @abstractmethod
    async def update(self, idea: Idea) -> Idea:
        """
        Replaces the stored record for `idea.id`, provided the stored version
        still equals `idea.version`. Never inserts.

        Returns:
            Idea: The persisted idea, carrying the incremented version.
        """

    @abstractmethod
    async def delete(self, idea_id: str) -> None:
        """Removes the record for `idea_id`."""

    @abstractmethod
    async def list_ids(self) -> List[str]:
        """Returns every stored id in ascending order."""
