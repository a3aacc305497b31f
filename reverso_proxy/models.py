from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


TierName = Literal["context", "translation", "scrape"]


class TranslationRequest(BaseModel):
    """One lookup against the upstream service, in canonical upstream language names."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    source_lang: str = Field(description="Canonical upstream name, for example 'english'.")
    target_lang: str = Field(description="Canonical upstream name, for example 'russian'.")


class ExamplePair(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = 0
    source: str = ""
    target: str = ""


class TierResult(BaseModel):
    """Uniform output of every tier client.

    ``ok=False`` always carries two empty sequences; use :meth:`failed` for that value.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    translations: tuple[str, ...] = ()
    examples: tuple[ExamplePair, ...] = ()

    @model_validator(mode="after")
    def _failed_is_empty(self) -> TierResult:
        if not self.ok and (self.translations or self.examples):
            raise ValueError("a failed tier result cannot carry translations or examples")
        return self

    @classmethod
    def failed(cls) -> TierResult:
        return cls(ok=False)

    @property
    def is_empty(self) -> bool:
        return not self.translations and not self.examples


class TranslateResponse(BaseModel):
    text: str
    source: str
    target: str
    translations: list[str]
    examples: list[ExamplePair]


class ErrorResponse(BaseModel):
    error: str
