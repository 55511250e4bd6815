import argparse
import asyncio
import sys
import logging
from contextlib import AsyncExitStack
from typing import List, Optional

import aiohttp
from pydantic import ValidationError

from src.config import Settings
from src.application.use_case import UseCaseExecutor
from src.domain.exceptions import RatingCoreException
from src.domain.models import Idea
from src.domain.repository import IdeaRepository
from src.domain.strategies import IntegerRatingStrategy, MutationStrategy, RangeRatingStrategy
from src.infrastructure.database import SqlRepository
from src.infrastructure.file_store import JsonFileRepository
from src.infrastructure.http_client import HttpRepository

logger = logging.getLogger(__name__)

def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

def build_repository(settings: Settings, session: Optional[aiohttp.ClientSession] = None) -> IdeaRepository:
    """Picks the concrete repository named by REPOSITORY_BACKEND."""
    backend = settings.repository_backend
    if backend == "file":
        return JsonFileRepository(settings.data_file)
    if backend == "sql":
        return SqlRepository(db_url=settings.database_url)
    if backend == "http":
        if session is None:
            raise ValueError("The http backend needs an aiohttp session.")
        return HttpRepository(
            session=session,
            base_url=settings.api_url,
            token=settings.api_token,
            max_retries=settings.http_max_retries,
        )
    raise ValueError(f"Unknown repository backend {backend!r}.")

def build_strategy(settings: Settings) -> MutationStrategy:
    if settings.rating_strategy == "integer":
        return IntegerRatingStrategy(settings.rating_min, settings.rating_max)
    return RangeRatingStrategy(settings.rating_min, settings.rating_max)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rating-core", description="Rate and manage ideas.")
    commands = parser.add_subparsers(dest="command", required=True)

    rate = commands.add_parser("rate", help="Fold a rating into an idea")
    rate.add_argument("idea_id")
    rate.add_argument("value", type=float)

    add = commands.add_parser("add", help="Create a new idea")
    add.add_argument("idea_id")
    add.add_argument("title", nargs="?", default="")

    show = commands.add_parser("show", help="Print one idea")
    show.add_argument("idea_id")

    remove = commands.add_parser("delete", help="Delete an idea")
    remove.add_argument("idea_id")

    commands.add_parser("list", help="List stored idea ids")
    commands.add_parser("init", help="Create the database schema (sql backend)")
    return parser

async def run(args: argparse.Namespace, settings: Settings) -> None:
    async with AsyncExitStack() as stack:
        session = None
        if settings.repository_backend == "http":
            session = await stack.enter_async_context(aiohttp.ClientSession())

        repository = build_repository(settings, session)
        if isinstance(repository, SqlRepository):
            stack.push_async_callback(repository.dispose)

        if args.command == "rate":
            executor = UseCaseExecutor(repository, build_strategy(settings))
            idea = await executor.execute_with_retry(args.idea_id, {"rating": args.value})
            print(idea.model_dump_json())
        elif args.command == "add":
            await repository.save(Idea(id=args.idea_id, title=args.title))
            logger.info(f"Idea {args.idea_id!r} created.")
        elif args.command == "show":
            print((await repository.find(args.idea_id)).model_dump_json())
        elif args.command == "delete":
            await repository.delete(args.idea_id)
            logger.info(f"Idea {args.idea_id!r} deleted.")
        elif args.command == "list":
            for idea_id in await repository.list_ids():
                print(idea_id)
        elif args.command == "init":
            if not isinstance(repository, SqlRepository):
                logger.info("Nothing to initialise for this backend.")
                return
            await repository.create_schema()
            logger.info("Database schema created.")

def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
        settings.validate_backend()
    except (ValidationError, ValueError) as e:
        configure_logging()
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    configure_logging(settings.log_level)

    try:
        asyncio.run(run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user. Exiting gracefully.")
    except RatingCoreException as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logger.exception(f"An unexpected error occurred: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
