import logging
from typing import Any, Mapping, Optional

from src.domain.exceptions import (
    ConflictError,
    DomainConflict,
    DomainNotFound,
    DomainRejected,
    InfrastructureUnavailable,
    NotFoundError,
    RejectedError,
    UnavailableError,
)
from src.domain.models import Idea
from src.domain.repository import IdeaRepository
from src.domain.strategies import MutationStrategy

logger = logging.getLogger(__name__)

DEFAULT_CONFLICT_ATTEMPTS = 3


class UseCaseExecutor:
    """
    Runs one business operation against a single idea:
    load via the repository, apply the injected strategy, persist via the
    repository.

    The executor only knows the IdeaRepository and MutationStrategy
    abstractions; the concrete implementations are chosen by whoever assembles
    it. It keeps no per-call state, so one instance can be shared by
    concurrent callers.
    """

    def __init__(self, repository: IdeaRepository, strategy: MutationStrategy):
        self.repository = repository
        self.strategy = strategy

    async def execute(self, identity: str, params: Optional[Mapping[str, Any]] = None) -> Idea:
        """
        Loads `identity`, applies the strategy with `params` and persists the
        result.

        Returns:
            Idea: The persisted idea.

        Raises:
            DomainNotFound: No idea is stored under `identity`.
            DomainRejected: The strategy refused `params`; nothing was written.
            DomainConflict: The idea vanished or changed before it was persisted.
            InfrastructureUnavailable: The repository could not be reached.
        """
        params = params or {}

        # Loading
        try:
            idea = await self.repository.find(identity)
        except NotFoundError as e:
            logger.info(f"Idea {identity!r} does not exist.")
            raise DomainNotFound(f"Idea {identity!r} does not exist.", e) from e
        except UnavailableError as e:
            logger.error(f"Could not load idea {identity!r}: {e}")
            raise InfrastructureUnavailable(f"Could not load idea {identity!r}.", e) from e

        # Applying
        try:
            self.strategy.apply(idea, params)
        except RejectedError as e:
            logger.info(f"Operation on {identity!r} rejected: {e.reason_code}.")
            raise DomainRejected(
                f"Operation on idea {identity!r} rejected: {e}", e.reason_code, e
            ) from e

        # Persisting
        try:
            persisted = await self.repository.update(idea)
        except (NotFoundError, ConflictError) as e:
            logger.warning(f"Idea {identity!r} changed before it could be saved: {e}")
            raise DomainConflict(f"Idea {identity!r} changed before it could be saved.", e) from e
        except UnavailableError as e:
            logger.error(f"Could not save idea {identity!r}: {e}")
            raise InfrastructureUnavailable(f"Could not save idea {identity!r}.", e) from e

        logger.info(
            f"Idea {identity!r} updated: votes={persisted.votes}, "
            f"rating={persisted.rating:.2f}, version={persisted.version}."
        )
        return persisted

    async def execute_with_retry(
        self,
        identity: str,
        params: Optional[Mapping[str, Any]] = None,
        attempts: int = DEFAULT_CONFLICT_ATTEMPTS,
    ) -> Idea:
        """
        Calls `execute` again, from a fresh load, each time it ends in
        DomainConflict. Every other outcome is returned or raised as is.
        """
        if attempts < 1:
            raise ValueError("attempts must be at least 1.")

        for attempt in range(1, attempts + 1):
            try:
                return await self.execute(identity, params)
            except DomainConflict:
                if attempt == attempts:
                    raise
                logger.warning(f"Conflict on {identity!r}, reloading (attempt {attempt}/{attempts}).")
