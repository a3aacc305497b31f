from __future__ import annotations

from dataclasses import dataclass


class UnsupportedLanguageError(ValueError):
    pass


@dataclass(frozen=True)
class Language:
    iso: str
    name: str
    code3: str


LANGUAGES: dict[str, Language] = {
    lang.iso: lang
    for lang in (
        Language("en", "english", "eng"),
        Language("ru", "russian", "rus"),
        Language("fr", "french", "fra"),
        Language("de", "german", "ger"),
        Language("es", "spanish", "spa"),
        Language("it", "italian", "ita"),
        Language("pt", "portuguese", "por"),
        Language("ar", "arabic", "ara"),
        Language("he", "hebrew", "heb"),
        Language("ja", "japanese", "jpn"),
        Language("nl", "dutch", "dut"),
        Language("pl", "polish", "pol"),
        Language("ro", "romanian", "rum"),
        Language("sv", "swedish", "swe"),
        Language("tr", "turkish", "tur"),
        Language("uk", "ukrainian", "ukr"),
        Language("zh", "chinese", "chi"),
    )
}

_BY_NAME: dict[str, Language] = {lang.name: lang for lang in LANGUAGES.values()}


def resolve_language(iso: str, strict: bool = False) -> str:
    """Map an ISO code to the canonical upstream name.

    Unknown codes pass through unchanged unless ``strict`` is set.
    """
    lang = LANGUAGES.get(iso.strip().lower())
    if lang is not None:
        return lang.name
    if strict:
        raise UnsupportedLanguageError(iso)
    return iso


def iso_code(name: str) -> str:
    lang = _BY_NAME.get(name)
    return lang.iso if lang else name


def three_letter_code(name: str) -> str:
    lang = _BY_NAME.get(name)
    return lang.code3 if lang else name
