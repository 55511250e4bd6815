from numbers import Real
from pydantic import BaseModel, Field, ConfigDict, model_validator

class Idea(BaseModel):
    """
    Rateable domain entity.

    Attribute assignment is blocked: `votes` and `rating` change only through
    `add_rating`, and `version` only through a repository write.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Opaque, stable identity")
    title: str = Field("", description="Human readable title")
    votes: int = Field(0, ge=0, description="Number of ratings folded in")
    rating: float = Field(0.0, description="Running average of all ratings")
    version: int = Field(0, ge=0, description="Optimistic concurrency stamp")

    @model_validator(mode="after")
    def _check_unrated(self) -> "Idea":
        if self.votes == 0 and self.rating != 0:
            raise ValueError("An idea without votes cannot carry a rating.")
        return self

    def add_rating(self, value: float) -> None:
        """
        Folds `value` into the running average and counts one more vote.

        Both fields are replaced in a single update so no caller can observe a
        vote without its rating, or the other way round.
        """
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ValueError(f"Rating must be a number, got {value!r}.")

        votes = self.votes + 1
        rating = (self.rating * self.votes + float(value)) / votes
        self.__dict__.update(votes=votes, rating=rating)
