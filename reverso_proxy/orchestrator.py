from __future__ import annotations

import logging
from dataclasses import dataclass, field

from reverso_proxy.executor import RetryingExecutor
from reverso_proxy.models import ExamplePair, TierName, TierResult, TranslateResponse, TranslationRequest
from reverso_proxy.normalizer import normalize
from reverso_proxy.tiers import TierClient

logger = logging.getLogger(__name__)


@dataclass
class Slots:
    """The two independently resolved outputs of one request."""

    translations: list[str] = field(default_factory=list)
    examples: list[ExamplePair] = field(default_factory=list)
    translations_from: TierName | None = None
    examples_from: TierName | None = None

    @property
    def complete(self) -> bool:
        return bool(self.translations) and bool(self.examples)

    def offer(self, tier: TierName, result: TierResult, translations: bool = True, examples: bool = True) -> None:
        cleaned_translations, cleaned_examples = normalize(result.translations, result.examples)
        if translations and not self.translations and cleaned_translations:
            self.translations = cleaned_translations
            self.translations_from = tier
        if examples and not self.examples and cleaned_examples:
            self.examples = cleaned_examples
            self.examples_from = tier


class FallbackOrchestrator:
    """Resolves translations and examples across tiers, cheapest first.

    A later tier is consulted for a slot only while that slot is still empty, so the
    two slots may be filled by different tiers.
    """

    def __init__(self, executor: RetryingExecutor, tiers: dict[TierName, TierClient]) -> None:
        self.executor = executor
        self.tiers = tiers

    async def _run(self, name: TierName, request: TranslationRequest, **kwargs) -> TierResult:
        tier = self.tiers.get(name)
        if tier is None:
            return TierResult.failed()
        return await self.executor.retry(tier, request, **kwargs)

    async def resolve(self, request: TranslationRequest) -> Slots:
        slots = Slots()

        slots.offer("context", await self._run("context", request))

        if not slots.translations:
            slots.offer("translation", await self._run("translation", request), examples=False)

        if not slots.examples:
            result = await self._run("translation", request)
            slots.offer("translation", result, translations=False)

        if not slots.complete and "scrape" in self.tiers:
            try:
                slots.offer("scrape", await self._run("scrape", request, max_attempts=1))
            except Exception:
                logger.exception(f"Browser scrape failed for '{request.text}'")

        logger.info(
            f"Resolved '{request.text}' {request.source_lang}->{request.target_lang}: "
            f"{len(slots.translations)} translations from {slots.translations_from}, "
            f"{len(slots.examples)} examples from {slots.examples_from}"
        )
        return slots

    async def translate(self, request: TranslationRequest, source: str, target: str) -> TranslateResponse:
        slots = await self.resolve(request)
        return TranslateResponse(
            text=request.text,
            source=source,
            target=target,
            translations=slots.translations,
            examples=slots.examples,
        )
