import unittest

from src.domain.models import Idea
from src.infrastructure.acl import IdeaTranslator


class TestIdeaTranslator(unittest.TestCase):
    def test_to_domain_parses_record(self) -> None:
        raw = {
            "id": "idea-1",
            "title": "Flying cars",
            "votes": 10,
            "rating": 4.0,
            "version": 3,
            "updated_at": "2024-01-02T03:04:05Z",
        }

        idea = IdeaTranslator.to_domain(raw)

        self.assertEqual(idea, Idea(id="idea-1", title="Flying cars", votes=10, rating=4.0, version=3))

    def test_missing_optional_fields_default(self) -> None:
        idea = IdeaTranslator.to_domain({"id": "idea-1", "title": None})

        self.assertEqual((idea.title, idea.votes, idea.rating, idea.version), ("", 0, 0.0, 0))

    def test_missing_id_raises(self) -> None:
        with self.assertRaises(ValueError):
            IdeaTranslator.to_domain({"title": "No identity"})

    def test_invalid_record_raises_value_error(self) -> None:
        with self.assertRaises(ValueError):
            IdeaTranslator.to_domain({"id": "idea-1", "votes": -3})

    def test_to_record_round_trips(self) -> None:
        idea = Idea(id="idea-1", title="Flying cars", votes=2, rating=3.5, version=1)

        self.assertEqual(IdeaTranslator.to_domain(IdeaTranslator.to_record(idea)), idea)

    def test_non_mapping_record_raises_value_error(self) -> None:
        for raw in (5, None, ["idea-1"], "idea-1"):
            with self.subTest(raw=raw):
                with self.assertRaises(ValueError):
                    IdeaTranslator.to_domain(raw)
