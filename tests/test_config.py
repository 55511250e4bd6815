import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from pydantic import ValidationError

from src.config import Settings


def _settings(**environ) -> Settings:
    with patch.dict("os.environ", environ, clear=True):
        return Settings(_env_file=None)


class TestSettings(unittest.TestCase):
    def test_defaults(self) -> None:
        settings = _settings()

        self.assertEqual(settings.repository_backend, "file")
        self.assertEqual(settings.data_file, "ideas.json")
        self.assertEqual((settings.rating_min, settings.rating_max), (1, 5))

    def test_reads_upper_case_variables(self) -> None:
        settings = _settings(
            REPOSITORY_BACKEND="SQL",
            DATABASE_URL="postgresql+asyncpg://u:p@localhost/db",
            RATING_MAX="10",
            HTTP_MAX_RETRIES="2",
        )

        self.assertEqual(settings.repository_backend, "sql")
        self.assertEqual(settings.rating_max, 10)
        self.assertEqual(settings.http_max_retries, 2)
        settings.validate_backend()

    def test_empty_variables_keep_defaults(self) -> None:
        settings = _settings(DATA_FILE="", RATING_STRATEGY="")

        self.assertEqual(settings.data_file, "ideas.json")
        self.assertEqual(settings.rating_strategy, "range")

    def test_unknown_backend_is_invalid(self) -> None:
        for backend in ("mongo", "memory"):
            with self.subTest(backend=backend):
                with self.assertRaises(ValidationError):
                    _settings(REPOSITORY_BACKEND=backend)

    def test_inverted_rating_range_is_invalid(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(RATING_MIN="6", RATING_MAX="5")

    def test_backend_requirements(self) -> None:
        for backend, variable in (("sql", "DATABASE_URL"), ("http", "API_URL")):
            with self.subTest(backend=backend):
                settings = _settings(REPOSITORY_BACKEND=backend)
                with self.assertRaises(ValueError) as ctx:
                    settings.validate_backend()
                self.assertIn(variable, str(ctx.exception))

    def test_token_is_hidden_from_repr(self) -> None:
        self.assertNotIn("s3cret", repr(_settings(API_TOKEN="s3cret")))

    def test_reads_dotenv_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / ".env"
            env_file.write_text("REPOSITORY_BACKEND=http\nAPI_URL=https://api.test\n", encoding="utf-8")
            with patch.dict("os.environ", {}, clear=True):
                settings = Settings(_env_file=env_file)

        self.assertEqual(settings.repository_backend, "http")
        self.assertEqual(settings.api_url, "https://api.test")

    def test_environment_overrides_dotenv(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            env_file = Path(tmp) / ".env"
            env_file.write_text("LOG_LEVEL=DEBUG\n", encoding="utf-8")
            with patch.dict("os.environ", {"LOG_LEVEL": "WARNING"}, clear=True):
                settings = Settings(_env_file=env_file)

        self.assertEqual(settings.log_level, "WARNING")
