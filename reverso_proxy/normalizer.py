from __future__ import annotations

from typing import Iterable

from reverso_proxy.models import ExamplePair


def _clean(value: str | None) -> str:
    return (value or "").strip()


def normalize(
    translations: Iterable[str | None],
    examples: Iterable[ExamplePair],
) -> tuple[list[str], list[ExamplePair]]:
    """Drop blank translations and blank example pairs, then renumber examples from 0.

    A pair survives when either side has text. Applying this twice is a no-op.
    """
    kept_translations = [cleaned for cleaned in (_clean(t) for t in translations) if cleaned]

    kept_examples: list[ExamplePair] = []
    for pair in examples:
        source, target = _clean(pair.source), _clean(pair.target)
        if not source and not target:
            continue
        kept_examples.append(ExamplePair(id=len(kept_examples), source=source, target=target))

    return kept_translations, kept_examples
