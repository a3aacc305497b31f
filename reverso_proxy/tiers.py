from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
from bs4 import BeautifulSoup

from reverso_proxy.config import Settings
from reverso_proxy.languages import iso_code, three_letter_code
from reverso_proxy.models import ExamplePair, TierName, TierResult, TranslationRequest


CONTEXT_ENDPOINT = "https://context.reverso.net/bst-query-service"
TRANSLATION_ENDPOINT = "https://api.reverso.net/translate/v1/translation"


class TierError(RuntimeError):
    pass


def strip_markup(fragment: Any) -> str:
    """Reverso highlights matched words with inline tags; keep the text only."""
    if fragment is None:
        return ""
    text = str(fragment)
    if "<" not in text:
        return text
    return BeautifulSoup(text, "html.parser").get_text()


def _pairs_to_examples(pairs: list[tuple[str, str]]) -> tuple[ExamplePair, ...]:
    return tuple(ExamplePair(id=index, source=source, target=target) for index, (source, target) in enumerate(pairs))


def _tier_result(ok: bool, translations: list[str], pairs: list[tuple[str, str]]) -> TierResult:
    if not ok or (not translations and not pairs):
        return TierResult.failed()
    return TierResult(ok=True, translations=tuple(translations), examples=_pairs_to_examples(pairs))


@dataclass(frozen=True)
class ContextResult:
    ok: bool
    translations: list[str] = field(default_factory=list)
    examples: list[tuple[str, str]] = field(default_factory=list)

    def to_tier_result(self) -> TierResult:
        return _tier_result(self.ok, self.translations, self.examples)


@dataclass(frozen=True)
class TranslationResult:
    translations: list[str] = field(default_factory=list)
    context_examples: list[tuple[str, str]] = field(default_factory=list)

    def to_tier_result(self) -> TierResult:
        return _tier_result(True, self.translations, self.context_examples)


@dataclass(frozen=True)
class ScrapeResult:
    translations: list[str] = field(default_factory=list)
    examples: list[tuple[str, str]] = field(default_factory=list)

    def to_tier_result(self) -> TierResult:
        return _tier_result(True, self.translations, self.examples)


class TierClient:
    name: TierName
    max_attempts: int = 1
    attempt_timeout: float | None = None

    async def fetch(self, request: TranslationRequest) -> TierResult:
        raise NotImplementedError

    def succeeded(self, result: TierResult) -> bool:
        return result.ok and not result.is_empty


class _JsonTierClient(TierClient):
    endpoint: str

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.timeout = settings.request_timeout_seconds
        self.attempt_timeout = settings.request_timeout_seconds
        self.user_agent = settings.user_agent
        self.transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def _post(self, payload: dict[str, Any]) -> dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            resp = await client.post(self.endpoint, json=payload, headers=self._headers())
            resp.raise_for_status()
            try:
                data = resp.json()
            except ValueError as exc:
                raise TierError(f"{self.name}: response is not JSON") from exc
        if not isinstance(data, dict):
            raise TierError(f"{self.name}: unexpected payload type {type(data).__name__}")
        return data


class ContextLookupClient(_JsonTierClient):
    """Combined dictionary and example-sentence query."""

    name = "context"
    endpoint = CONTEXT_ENDPOINT

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__(settings, transport)
        self.max_attempts = settings.context_max_attempts

    def _headers(self) -> dict[str, str]:
        headers = super()._headers()
        headers["X-Requested-With"] = "XMLHttpRequest"
        return headers

    async def fetch(self, request: TranslationRequest) -> TierResult:
        payload = {
            "source_text": request.text,
            "target_text": "",
            "source_lang": iso_code(request.source_lang),
            "target_lang": iso_code(request.target_lang),
            "npage": 1,
            "mode": 0,
        }
        data = await self._post(payload)
        return self.parse(data).to_tier_result()

    @staticmethod
    def parse(data: dict[str, Any]) -> ContextResult:
        try:
            translations = [
                strip_markup(entry["term"])
                for entry in data.get("dictionary_entry_list") or []
                if entry.get("term") is not None
            ]
            examples = [
                (strip_markup(item.get("s_text")), strip_markup(item.get("t_text")))
                for item in data.get("list") or []
            ]
        except (AttributeError, KeyError, TypeError) as exc:
            raise TierError(f"context: malformed payload: {exc}") from exc
        return ContextResult(ok=bool(data.get("success", True)), translations=translations, examples=examples)


class TranslationLookupClient(_JsonTierClient):
    """Plain translation query; example pairs are nested under ``contextResults``."""

    name = "translation"
    endpoint = TRANSLATION_ENDPOINT

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        super().__init__(settings, transport)
        self.max_attempts = settings.translation_max_attempts

    async def fetch(self, request: TranslationRequest) -> TierResult:
        payload = {
            "format": "text",
            "from": three_letter_code(request.source_lang),
            "to": three_letter_code(request.target_lang),
            "input": request.text,
            "options": {
                "sentenceSplitter": True,
                "origin": "translation.web",
                "contextResults": True,
                "languageDetection": True,
            },
        }
        data = await self._post(payload)
        return self.parse(data).to_tier_result()

    def succeeded(self, result: TierResult) -> bool:
        return bool(result.translations)

    @staticmethod
    def parse(data: dict[str, Any]) -> TranslationResult:
        try:
            results = (data.get("contextResults") or {}).get("results") or []
            candidates = list(data.get("translation") or [])
            candidates.extend(result.get("translation") for result in results)

            translations: list[str] = []
            for candidate in candidates:
                if candidate is None:
                    continue
                text = strip_markup(candidate)
                if text not in translations:
                    translations.append(text)

            examples: list[tuple[str, str]] = []
            for result in results:
                sources = result.get("sourceExamples") or []
                targets = result.get("targetExamples") or []
                examples.extend((strip_markup(s), strip_markup(t)) for s, t in zip(sources, targets))
        except (AttributeError, TypeError) as exc:
            raise TierError(f"translation: malformed payload: {exc}") from exc
        return TranslationResult(translations=translations, context_examples=examples)
