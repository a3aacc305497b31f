"""Last-resort tier: render the public Reverso Context page in a headless browser.

Rendering and extraction sit behind two small interfaces, ``PageRenderer`` and
``PageExtractor``, so the tier can run against canned HTML in tests.
"""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import quote

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from reverso_proxy.config import Settings
from reverso_proxy.models import TierResult, TranslationRequest
from reverso_proxy.tiers import ScrapeResult, TierClient, TierError

logger = logging.getLogger(__name__)

CONTEXT_PAGE_URL = "https://context.reverso.net/translation/{source}-{target}/{text}"
SETTLE_TIMEOUT_MS = 5_000


class PageRenderer(Protocol):
    async def render(self, url: str) -> str: ...


class PageExtractor(Protocol):
    def extract(self, html: str) -> ScrapeResult: ...


class PlaywrightRenderer:
    """Launches a fresh Chromium per render and always closes it."""

    def __init__(
        self,
        executable_path: str | None = None,
        timeout_seconds: float = 30.0,
        user_agent: str | None = None,
    ) -> None:
        self.executable_path = executable_path
        self.timeout_ms = timeout_seconds * 1000
        self.user_agent = user_agent

    async def render(self, url: str) -> str:
        async with async_playwright() as playwright:
            browser = await playwright.chromium.launch(headless=True, executable_path=self.executable_path)
            try:
                page = await browser.new_page(user_agent=self.user_agent)
                await page.goto(url, wait_until="domcontentloaded", timeout=self.timeout_ms)
                try:
                    await page.wait_for_load_state("networkidle", timeout=min(SETTLE_TIMEOUT_MS, self.timeout_ms))
                except PlaywrightTimeoutError:
                    logger.debug(f"Page did not go idle, extracting current DOM: {url}")
                return await page.content()
            finally:
                await browser.close()


class ReversoPageExtractor:
    translation_selector = "#translations-content .translation"
    example_selector = "#examples-content .example"
    source_selector = ".src .text"
    target_selector = ".trg .text"

    def extract(self, html: str) -> ScrapeResult:
        soup = BeautifulSoup(html, "html.parser")
        translations = [node.get_text(" ", strip=True) for node in soup.select(self.translation_selector)]
        examples = []
        for node in soup.select(self.example_selector):
            source = node.select_one(self.source_selector)
            target = node.select_one(self.target_selector)
            examples.append(
                (
                    source.get_text(" ", strip=True) if source else "",
                    target.get_text(" ", strip=True) if target else "",
                )
            )
        return ScrapeResult(translations=translations, examples=examples)


class BrowserScrapeClient(TierClient):
    name = "scrape"
    max_attempts = 1

    def __init__(
        self,
        settings: Settings,
        renderer: PageRenderer | None = None,
        extractor: PageExtractor | None = None,
    ) -> None:
        self.attempt_timeout = settings.scrape_timeout_seconds
        self.renderer = renderer or PlaywrightRenderer(
            executable_path=settings.browser_executable_path,
            timeout_seconds=settings.scrape_timeout_seconds,
            user_agent=settings.user_agent,
        )
        self.extractor = extractor or ReversoPageExtractor()

    @staticmethod
    def page_url(request: TranslationRequest) -> str:
        return CONTEXT_PAGE_URL.format(
            source=quote(request.source_lang, safe=""),
            target=quote(request.target_lang, safe=""),
            text=quote(request.text, safe=""),
        )

    async def fetch(self, request: TranslationRequest) -> TierResult:
        url = self.page_url(request)
        try:
            html = await self.renderer.render(url)
        except PlaywrightError as exc:
            raise TierError(f"scrape: browser failed on {url}: {exc}") from exc
        try:
            result = self.extractor.extract(html)
        except (AttributeError, TypeError, ValueError) as exc:
            raise TierError(f"scrape: could not parse page: {exc}") from exc
        return result.to_tier_result()
