import io
import json
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest.mock import MagicMock, patch

from src.config import Settings
from src.domain.strategies import IntegerRatingStrategy, RangeRatingStrategy
from src.infrastructure.database import SqlRepository
from src.infrastructure.file_store import JsonFileRepository
from src.infrastructure.http_client import HttpRepository
from src.main import build_parser, build_repository, build_strategy, run


class TestAssembly(unittest.TestCase):
    def test_build_repository_per_backend(self) -> None:
        self.assertIsInstance(
            build_repository(Settings(repository_backend="file", data_file="x.json")), JsonFileRepository
        )
        self.assertIsInstance(
            build_repository(Settings(repository_backend="http", api_url="https://api.test"), MagicMock()),
            HttpRepository,
        )
        with patch("src.infrastructure.database.create_async_engine"):
            repo = build_repository(Settings(repository_backend="sql", database_url="sqlite+aiosqlite://"))
        self.assertIsInstance(repo, SqlRepository)

    def test_http_backend_needs_session(self) -> None:
        with self.assertRaises(ValueError):
            build_repository(Settings(repository_backend="http", api_url="https://api.test"))

    def test_build_strategy(self) -> None:
        strategy = build_strategy(Settings(rating_strategy="integer", rating_min=0, rating_max=10))

        self.assertIsInstance(strategy, IntegerRatingStrategy)
        self.assertEqual((strategy.minimum, strategy.maximum), (0, 10))
        self.assertIsInstance(build_strategy(Settings()), RangeRatingStrategy)


class TestRun(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.settings = Settings(repository_backend="file", data_file=str(Path(tmp.name) / "ideas.json"))
        self.parser = build_parser()

    async def _run(self, *argv: str) -> str:
        out = io.StringIO()
        with redirect_stdout(out):
            await run(self.parser.parse_args(list(argv)), self.settings)
        return out.getvalue()

    async def test_add_rate_show_list_delete(self) -> None:
        await self._run("add", "idea-1", "Flying cars")
        rated = json.loads(await self._run("rate", "idea-1", "4"))
        shown = json.loads(await self._run("show", "idea-1"))

        self.assertEqual(rated["votes"], 1)
        self.assertEqual(rated["rating"], 4.0)
        self.assertEqual(shown, rated)
        self.assertEqual(await self._run("list"), "idea-1\n")

        await self._run("delete", "idea-1")
        self.assertEqual(await self._run("list"), "")
