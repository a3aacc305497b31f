from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from playwright.async_api import Error as PlaywrightError

from reverso_proxy import scrape
from reverso_proxy.config import load_settings
from reverso_proxy.models import TranslationRequest
from reverso_proxy.scrape import BrowserScrapeClient, PlaywrightRenderer, ReversoPageExtractor
from reverso_proxy.tiers import TierError


REQUEST = TranslationRequest(text="good morning", source_lang="english", target_lang="french")

PAGE = """
<html><body>
  <div id="translations-content">
    <a class="translation"><span class="display-term">bonjour</span></a>
    <a class="translation"><span class="display-term">  </span></a>
  </div>
  <section id="examples-content">
    <div class="example">
      <div class="src"><span class="text"><em>Good morning</em>, everyone.</span></div>
      <div class="trg"><span class="text"><em>Bonjour</em> à tous.</span></div>
    </div>
    <div class="example">
      <div class="src"><span class="text">Good morning, sir.</span></div>
    </div>
  </section>
</body></html>
"""


class FakeRenderer:
    def __init__(self, html: str = PAGE, error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.urls: list[str] = []

    async def render(self, url: str) -> str:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.html


def test_extractor_reads_structural_selectors():
    result = ReversoPageExtractor().extract(PAGE)

    assert result.translations == ["bonjour", ""]
    assert result.examples == [
        ("Good morning , everyone.", "Bonjour à tous."),
        ("Good morning, sir.", ""),
    ]


def test_scrape_client_renders_context_page():
    renderer = FakeRenderer()
    client = BrowserScrapeClient(load_settings(), renderer=renderer)

    result = asyncio.run(client.fetch(REQUEST))

    assert renderer.urls == ["https://context.reverso.net/translation/english-french/good%20morning"]
    assert result.ok
    assert result.translations[0] == "bonjour"
    assert len(result.examples) == 2
    assert client.max_attempts == 1


def test_scrape_client_wraps_browser_errors():
    client = BrowserScrapeClient(load_settings(), renderer=FakeRenderer(error=PlaywrightError("net::ERR_TIMED_OUT")))

    with pytest.raises(TierError):
        asyncio.run(client.fetch(REQUEST))


def test_scrape_client_page_without_content_is_failure():
    client = BrowserScrapeClient(load_settings(), renderer=FakeRenderer(html="<html><body></body></html>"))

    result = asyncio.run(client.fetch(REQUEST))

    assert not result.ok


class FakePage:
    def __init__(self, fail_navigation: bool) -> None:
        self.fail_navigation = fail_navigation

    async def goto(self, url: str, wait_until: str, timeout: float) -> None:
        if self.fail_navigation:
            raise PlaywrightError("Timeout 30000ms exceeded")

    async def wait_for_load_state(self, state: str, timeout: float) -> None:
        return None

    async def content(self) -> str:
        return PAGE


class FakeBrowser:
    def __init__(self, fail_navigation: bool) -> None:
        self.fail_navigation = fail_navigation
        self.closed = False

    async def new_page(self, user_agent: str | None = None) -> FakePage:
        return FakePage(self.fail_navigation)

    async def close(self) -> None:
        self.closed = True


class FakePlaywright:
    def __init__(self, fail_navigation: bool = False) -> None:
        self.browsers: list[FakeBrowser] = []
        self.launch_options: list[dict] = []
        self.fail_navigation = fail_navigation

    def __call__(self) -> FakePlaywright:
        return self

    async def _launch(self, **options) -> FakeBrowser:
        self.launch_options.append(options)
        browser = FakeBrowser(self.fail_navigation)
        self.browsers.append(browser)
        return browser

    async def __aenter__(self):
        return SimpleNamespace(chromium=SimpleNamespace(launch=self._launch))

    async def __aexit__(self, *exc_info) -> bool:
        return False


def test_renderer_closes_browser_after_success(monkeypatch):
    fake = FakePlaywright()
    monkeypatch.setattr(scrape, "async_playwright", fake)

    html = asyncio.run(PlaywrightRenderer(executable_path="/opt/chrome").render("https://example.test"))

    assert html == PAGE
    assert fake.launch_options == [{"headless": True, "executable_path": "/opt/chrome"}]
    assert all(browser.closed for browser in fake.browsers)


def test_renderer_closes_browser_when_navigation_fails(monkeypatch):
    fake = FakePlaywright(fail_navigation=True)
    monkeypatch.setattr(scrape, "async_playwright", fake)

    with pytest.raises(PlaywrightError):
        asyncio.run(PlaywrightRenderer().render("https://example.test"))

    assert len(fake.browsers) == 1
    assert fake.browsers[0].closed
