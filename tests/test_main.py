import asyncio
import json

import pytest

import main
from conftest import FakeCatalogClient, make_wines
from models.models import SearchRequest, ShipTo
from scrapers.vivino_http import HttpVivinoClient
from scrapers.vivino_playwright import PlaywrightVivinoClient


class TestArgs:

    def test_defaults(self):
        args = main.build_parser().parse_args(["--name", "malbec"])
        request = main.request_from_args(args)

        assert request.query == "malbec"
        assert request.country_code == "US"
        assert request.state_code == "CA"
        assert request.min_price is None
        assert args.backend == "playwright"

    def test_filters_and_destination(self):
        args = main.build_parser().parse_args([
            "--name", "barolo", "--country", "IT",
            "--min-price", "20", "--max-average", "4.5",
        ])
        request = main.request_from_args(args)

        assert request.country_code == "IT"
        assert request.state_code == ""
        assert request.min_price == 20
        assert request.max_average == 4.5

    def test_name_is_required(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args([])

    def test_build_client(self):
        assert isinstance(main.build_client("http"), HttpVivinoClient)
        client = main.build_client("playwright", headed=True)
        assert isinstance(client, PlaywrightVivinoClient)
        assert client.headless is False


class TestRun:

    @pytest.mark.asyncio
    async def test_successful_run_is_saved_and_closed(self, tmp_path):
        client = FakeCatalogClient(pages=[(200, make_wines(3)), (200, [])])

        result = await main.run(client, SearchRequest(query="malbec"), str(tmp_path))

        assert result.status == "DONE"
        assert client.closed
        [output] = list(tmp_path.glob("vivino-output-*.json"))
        with open(output, encoding="utf-8") as f:
            doc = json.load(f)
        assert doc["status"] == "DONE"
        assert len(doc["vinos"]) == 3

    @pytest.mark.asyncio
    async def test_failed_run_is_still_saved(self, tmp_path):
        client = FakeCatalogClient(destination=ShipTo(country_code="FR"), reject_update=True)

        result = await main.run(client, SearchRequest(query="malbec"), str(tmp_path))

        assert result.status == "EXCEPTION"
        assert client.closed
        assert client.events[-1] == "close"
        assert len(list(tmp_path.glob("vivino-output-*.json"))) == 1

    @pytest.mark.asyncio
    async def test_save_error_does_not_escape(self, tmp_path, monkeypatch):
        def broken_save(result, output_dir):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(main, "save_result", broken_save)
        client = FakeCatalogClient(pages=[(200, make_wines(2)), (200, [])])

        result = await main.run(client, SearchRequest(query="malbec"), str(tmp_path))

        assert result.status == "DONE"
        assert len(result.vinos) == 2
        assert client.closed

    @pytest.mark.asyncio
    async def test_interrupted_run_saves_partial_records(self, tmp_path):
        client = FakeCatalogClient(pages=[(200, make_wines(2)), asyncio.CancelledError()])

        with pytest.raises(asyncio.CancelledError):
            await main.run(client, SearchRequest(query="malbec"), str(tmp_path))

        assert client.closed
        [output] = list(tmp_path.glob("vivino-output-*.json"))
        with open(output, encoding="utf-8") as f:
            doc = json.load(f)
        assert doc["status"] == "EXCEPTION"
        assert doc["message"] == "CancelledError"
        assert len(doc["vinos"]) == 2
