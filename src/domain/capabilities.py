from abc import ABC, abstractmethod
from pydantic import BaseModel, Field, ConfigDict, model_validator

class Measurable(ABC):
    """Anything that can report how far along it is."""

    @abstractmethod
    def current_amount(self) -> float:
        pass

    @abstractmethod
    def total_amount(self) -> float:
        pass


class FileTransfer(BaseModel, Measurable):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    sent_bytes: int = Field(0, ge=0)
    length_bytes: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "FileTransfer":
        if self.sent_bytes > self.length_bytes:
            raise ValueError("Cannot send more bytes than the file holds.")
        return self

    def current_amount(self) -> float:
        return self.sent_bytes

    def total_amount(self) -> float:
        return self.length_bytes


class ReadingProgress(BaseModel, Measurable):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    pages_read: int = Field(0, ge=0)
    page_count: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ReadingProgress":
        if self.pages_read > self.page_count:
            raise ValueError("Cannot read more pages than the book has.")
        return self

    def current_amount(self) -> float:
        return self.pages_read

    def total_amount(self) -> float:
        return self.page_count


class PasswordCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(..., repr=False)


class TokenCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str = Field(..., repr=False)


class Principal(BaseModel):
    """Identity established by a successful authentication."""
    model_config = ConfigDict(frozen=True)

    username: str
    method: str
