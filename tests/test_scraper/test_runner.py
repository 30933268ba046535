"""Tests for the on-demand scrape using a stand-in browser."""

from __future__ import annotations

import pytest

from udyam.browser.layer import ActionResult, ActionStatus, DOMSnapshot
from udyam.config.settings import AppSettings, ScraperConfig
from udyam.scraper.extractor import load_catalog, write_catalog, FieldDescriptor
from udyam.scraper.runner import ScrapeError, build_parser, scrape_form_fields

FORM_HTML = """
<form>
  <label for="aadhaar">Aadhaar Number</label><input id="aadhaar" name="aadhaar" />
  <input placeholder="Enter PAN" />
</form>
"""


class _FakeBrowser:
    def __init__(self, navigate_status: ActionStatus = ActionStatus.SUCCESS) -> None:
        self.navigate_status = navigate_status
        self.visited: list[str] = []
        self.started = False
        self.stopped = False

    async def __aenter__(self):
        self.started = True
        return self

    async def __aexit__(self, *exc_info):
        self.stopped = True

    async def navigate(self, url: str, timeout_ms: int = 30000) -> ActionResult:
        self.visited.append(url)
        return ActionResult(status=self.navigate_status, detail="net::ERR_NAME_NOT_RESOLVED")

    async def capture_dom(self) -> DOMSnapshot:
        return DOMSnapshot(
            html=FORM_HTML,
            url=self.visited[-1],
            title="UDYAM REGISTRATION FORM",
            dom_hash=DOMSnapshot.compute_hash(FORM_HTML),
        )


@pytest.fixture
def settings(tmp_path) -> AppSettings:
    return AppSettings(
        scraper=ScraperConfig(
            target_url="https://udyamregistration.gov.in/UdyamRegistration.aspx",
            catalog_path=tmp_path / "formFields.json",
        )
    )


class TestScrapeFormFields:
    @pytest.mark.asyncio
    async def test_scrape_writes_catalog(self, settings):
        browser = _FakeBrowser()

        fields = await scrape_form_fields(settings, browser=browser)

        assert browser.visited == [settings.scraper.target_url]
        assert browser.stopped
        assert [f.label for f in fields] == ["Aadhaar Number", "Enter PAN"]
        assert load_catalog(settings.scraper.catalog_path) == fields

    @pytest.mark.asyncio
    async def test_navigation_failure_keeps_previous_catalog(self, settings):
        previous = [FieldDescriptor(label="Old", name="old", type="input")]
        write_catalog(settings.scraper.catalog_path, previous)
        browser = _FakeBrowser(navigate_status=ActionStatus.FAILURE)

        with pytest.raises(ScrapeError):
            await scrape_form_fields(settings, browser=browser)

        assert browser.stopped
        assert load_catalog(settings.scraper.catalog_path) == previous


def test_cli_arguments():
    args = build_parser().parse_args(["--url", "http://localhost:8080/form", "--headed"])
    assert args.url == "http://localhost:8080/form"
    assert args.headed
    assert args.output is None
