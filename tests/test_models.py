import unittest

from pydantic import ValidationError

from src.domain.models import Idea


class TestIdea(unittest.TestCase):
    def test_add_rating_folds_into_running_average(self) -> None:
        idea = Idea(id="idea-1", votes=10, rating=4.0)

        idea.add_rating(5)

        self.assertEqual(idea.votes, 11)
        self.assertAlmostEqual(idea.rating, (4.0 * 10 + 5) / 11)
        self.assertAlmostEqual(idea.rating, 4.09, places=2)

    def test_first_rating_becomes_the_average(self) -> None:
        idea = Idea(id="idea-1")

        idea.add_rating(3)

        self.assertEqual(idea.votes, 1)
        self.assertEqual(idea.rating, 3.0)

    def test_each_call_counts_once(self) -> None:
        idea = Idea(id="idea-1", votes=1, rating=5.0)

        idea.add_rating(1)
        idea.add_rating(1)

        self.assertEqual(idea.votes, 3)
        self.assertAlmostEqual(idea.rating, 7 / 3)

    def test_same_inputs_give_same_result(self) -> None:
        first = Idea(id="idea-1", votes=4, rating=2.5)
        second = Idea(id="idea-1", votes=4, rating=2.5)

        first.add_rating(4)
        second.add_rating(4)

        self.assertEqual(first, second)

    def test_fields_cannot_be_assigned(self) -> None:
        idea = Idea(id="idea-1", votes=2, rating=3.0)

        with self.assertRaises(ValidationError):
            idea.rating = 5.0
        with self.assertRaises(ValidationError):
            idea.votes = 0

        self.assertEqual((idea.votes, idea.rating), (2, 3.0))

    def test_non_numeric_rating_leaves_idea_untouched(self) -> None:
        idea = Idea(id="idea-1", votes=2, rating=3.0)

        for value in ("5", None, True):
            with self.assertRaises(ValueError):
                idea.add_rating(value)

        self.assertEqual((idea.votes, idea.rating), (2, 3.0))

    def test_negative_votes_are_invalid(self) -> None:
        with self.assertRaises(ValidationError):
            Idea(id="idea-1", votes=-1)

    def test_rating_without_votes_is_invalid(self) -> None:
        with self.assertRaises(ValidationError):
            Idea(id="idea-1", votes=0, rating=4.0)

    def test_empty_id_is_invalid(self) -> None:
        with self.assertRaises(ValidationError):
            Idea(id="")
