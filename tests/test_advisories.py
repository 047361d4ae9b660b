"""Tests for advisory extraction, fetching and local advisory files."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from dep_watch.advisories.extractors import (
    extract_generic,
    extract_ox,
    extract_stepsecurity,
    extract_wiz,
    get_extractor,
    strip_html,
)
from dep_watch.advisories.offline import load_advisory_file, load_registry, registry_document
from dep_watch.advisories.online import AdvisoryFetcher
from dep_watch.config import AdvisorySource
from dep_watch.core.registry import AdvisoryRegistry


STEPSECURITY_PAGE = """
<table>
  <tr>
    <td class="package-name"><code>@ctrl/tinycolor</code></td>
    <td class="versions">4.1.1, 4.1.2</td>
  </tr>
  <tr>
    <td class="package-name">angulartics2</td>
    <td class="versions">14.1.2</td>
  </tr>
</table>
"""

OX_PAGE = """
<p>Intro</p>
<figure><table class="wp-block-table has-fixed-layout">
  <thead><tr><th>Package</th><th>Version</th></tr></thead>
  <tbody>
    <tr><td>ngx-toastr</td><td>19.0.1, 19.0.2</td></tr>
    <tr><td><strong>@nativescript-community/ui-label</strong></td><td>1.3.35</td></tr>
    <tr><td>incomplete row</td></tr>
  </tbody>
</table></figure>
<table class="has-fixed-layout"><tr><td>ignored</td><td>9.9.9</td></tr></table>
"""

WIZ_PAGE = """
<ul>
  <li><p class="my-0">@ctrl/tinycolor (4.1.1, 4.1.2)</p></li>
  <li> <p class="my-0"><code>angulartics2</code> 14.1.2</p> </li>
  <li><p class="my-0">rxnt-authentication (0.0.3-beta.1)</p></li>
  <li><p class="other">ignored 1.0.0</p></li>
</ul>
"""


class TestStripHtml:
    """Test tag stripping."""

    def test_removes_tags_and_decodes_entities(self):
        assert strip_html("<b>a &amp; b</b>") == "a & b"


class TestExtractors:
    """Test the per-layout extractors."""

    def test_extract_stepsecurity(self):
        assert extract_stepsecurity(STEPSECURITY_PAGE) == {
            "@ctrl/tinycolor": {"4.1.1", "4.1.2"},
            "angulartics2": {"14.1.2"},
        }

    def test_extract_ox(self):
        """Test that only the first table is read and the header row skipped."""
        assert extract_ox(OX_PAGE) == {
            "ngx-toastr": {"19.0.1", "19.0.2"},
            "@nativescript-community/ui-label": {"1.3.35"},
        }

    def test_extract_ox_without_table(self):
        assert extract_ox("<p>nothing here</p>") == {}

    def test_extract_wiz(self):
        assert extract_wiz(WIZ_PAGE) == {
            "@ctrl/tinycolor": {"4.1.1", "4.1.2"},
            "angulartics2": {"14.1.2"},
            "rxnt-authentication": {"0.0.3-beta.1"},
        }

    def test_extract_generic(self):
        page = (
            "<p>Affected: @ctrl/tinycolor@4.1.1, @ctrl/tinycolor@4.1.2 and "
            "<code>ngx-bootstrap@18.1.4</code>. Node 20.1.0 is not a package.</p>"
        )
        assert extract_generic(page) == {
            "@ctrl/tinycolor": {"4.1.1", "4.1.2"},
            "ngx-bootstrap": {"18.1.4"},
        }

    def test_get_extractor(self):
        assert get_extractor("wiz") is extract_wiz
        assert get_extractor("OX") is extract_ox

    def test_unknown_type_falls_back_to_generic(self):
        assert get_extractor("mystery") is extract_generic


class TestAdvisoryFetcher:
    """Test concurrent advisory fetching."""

    def test_fetch_all_merges_every_source(self):
        sources = [
            AdvisorySource("https://example.com/step", "stepsecurity"),
            AdvisorySource("https://example.com/wiz", "wiz"),
        ]
        pages = {
            "https://example.com/step": STEPSECURITY_PAGE,
            "https://example.com/wiz": WIZ_PAGE,
        }

        async def run():
            fetcher = AdvisoryFetcher()
            with patch.object(fetcher, "fetch_text", AsyncMock(side_effect=lambda url: pages[url])):
                return await fetcher.fetch_all(sources)

        snapshot = asyncio.run(run()).snapshot()

        assert snapshot["@ctrl/tinycolor"] == ("4.1.1", "4.1.2")
        assert snapshot["angulartics2"] == ("14.1.2",)
        assert snapshot["rxnt-authentication"] == ("0.0.3-beta.1",)

    def test_failing_source_contributes_nothing(self):
        sources = [
            AdvisorySource("https://example.com/down", "generic"),
            AdvisorySource("https://example.com/up", "generic"),
        ]

        async def fake_fetch(url):
            if url.endswith("down"):
                raise aiohttp.ClientError("connection refused")
            return "ngx-toastr@19.0.1"

        async def run():
            fetcher = AdvisoryFetcher()
            with patch.object(fetcher, "fetch_text", AsyncMock(side_effect=fake_fetch)):
                fragments = await fetcher.fetch_fragments(sources)
                registry = await fetcher.fetch_all(sources)
            return fragments, registry

        fragments, registry = asyncio.run(run())

        assert fragments == [{}, {"ngx-toastr": {"19.0.1"}}]
        assert dict(registry.snapshot()) == {"ngx-toastr": ("19.0.1",)}

    def test_unexpected_error_is_isolated(self):
        """Test that one crashing extractor does not lose the other sources."""
        sources = [
            AdvisorySource("https://example.com/a", "generic"),
            AdvisorySource("https://example.com/b", "generic"),
        ]

        async def run():
            fetcher = AdvisoryFetcher()
            with patch.object(
                fetcher, "fetch_text", AsyncMock(side_effect=[RuntimeError("boom"), "foo@1.0.0"])
            ):
                return await fetcher.fetch_fragments(sources)

        assert asyncio.run(run()) == [{}, {"foo": {"1.0.0"}}]

    def test_fetch_all_into_existing_registry(self):
        registry = AdvisoryRegistry()
        registry.merge({"local": ["1.0.0"]})

        async def run():
            fetcher = AdvisoryFetcher()
            with patch.object(fetcher, "fetch_text", AsyncMock(return_value="remote@2.0.0")):
                return await fetcher.fetch_all([AdvisorySource("https://example.com")], registry)

        result = asyncio.run(run())

        assert result is registry
        assert list(result) == ["local", "remote"]


class TestAdvisoryFiles:
    """Test offline advisory files."""

    def test_load_plain_mapping(self, tmp_path):
        path = tmp_path / "advisories.json"
        path.write_text(json.dumps({"foo": ["1.0.0", 2], "bar": "3.0.0"}))

        assert load_advisory_file(path) == {"foo": ["1.0.0"], "bar": ["3.0.0"]}

    def test_load_fetched_document(self, tmp_path):
        """Test that a saved registry document reads back."""
        registry = AdvisoryRegistry()
        registry.merge({"foo": ["1.0.0", "1.0.1"]})
        document = registry_document(registry.snapshot(), [AdvisorySource("https://example.com", "wiz")])

        path = tmp_path / "compromised-packages.json"
        path.write_text(json.dumps(document))

        assert document["sources"] == [{"url": "https://example.com", "type": "wiz"}]
        assert load_advisory_file(path) == {"foo": ["1.0.0", "1.0.1"]}

    def test_load_registry_merges_files(self, tmp_path):
        first = tmp_path / "a.json"
        first.write_text(json.dumps({"foo": ["1.0.0"]}))
        second = tmp_path / "b.json"
        second.write_text(json.dumps({"foo": ["1.0.1"], "bar": ["2.0.0"]}))

        snapshot = load_registry([first, second]).snapshot()
        assert dict(snapshot) == {"bar": ("2.0.0",), "foo": ("1.0.0", "1.0.1")}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_advisory_file(tmp_path / "missing.json")

    def test_invalid_layouts(self, tmp_path):
        path = tmp_path / "advisories.json"

        path.write_text(json.dumps(["foo@1.0.0"]))
        with pytest.raises(ValueError):
            load_advisory_file(path)

        path.write_text(json.dumps({"foo": {"version": "1.0.0"}}))
        with pytest.raises(ValueError):
            load_advisory_file(path)
