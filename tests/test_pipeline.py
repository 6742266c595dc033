"""
Tests for the catalog pipeline, the local JSON catalog and the CLI.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import main as cli
from catalog.extractors.nautic_extractor import SAMPLE_LISTINGS, NauticExtractor
from catalog.loaders.json_loader import JsonCatalogLoader
from catalog.loaders.supabase_loader import SyncStats
from catalog.pipeline import CatalogPipeline
from catalog.transformers.product_grouping import Listing


# =============================================================================
# JSON CATALOG
# =============================================================================


class TestJsonCatalogLoader:
    """products.json round trips through rows."""

    def test_save_and_load(self, tmp_path, swivel_listings):
        loader = JsonCatalogLoader(tmp_path / "out" / "products.json")
        path = loader.save_listings(swivel_listings)

        rows = json.loads(path.read_text(encoding="utf-8"))
        assert [row["group_id"] for row in rows] == ["anchor-swivel", "anchor-swivel", "teak-oil"]
        assert rows[0]["price"] == "€20.00"

        listings = loader.load_listings()
        assert [listing.title for listing in listings] == [
            "Anchor Swivel 8mm Black",
            "Anchor Swivel 10mm White",
            "Teak Oil 1L",
        ]

    def test_missing_file_is_empty(self, tmp_path):
        assert JsonCatalogLoader(tmp_path / "missing.json").load_rows() == []


# =============================================================================
# PIPELINE
# =============================================================================


class TestCatalogPipeline:
    """Extract, group and load."""

    def test_sample_run_to_json(self, pipeline_config):
        pipeline = CatalogPipeline(
            pipeline_config, use_supabase=False, save_local=True, use_sample=True
        )
        result = asyncio.run(pipeline.run())

        assert result["success"] is True
        assert result["listings_extracted"] == len(SAMPLE_LISTINGS)
        assert result["groups"] == 10
        assert result["listings_skipped"] == 0

        rows = json.loads(pipeline_config.storage.json_path.read_text(encoding="utf-8"))
        assert len(rows) == len(SAMPLE_LISTINGS)
        assert result["output_path"] == str(pipeline_config.storage.json_path)
        assert list(pipeline_config.logging.log_dir.glob("pipeline_*.log"))

    def test_supabase_sync(self, pipeline_config):
        loader = MagicMock()
        loader.sync_listings.return_value = SyncStats(total=12, inserted=12)

        with patch("catalog.pipeline._get_supabase_loader", return_value=MagicMock(return_value=loader)):
            pipeline = CatalogPipeline(pipeline_config, use_sample=True)
            result = asyncio.run(pipeline.run())

        assert result["synced"] == 12
        assert result["sync_errors"] == 0
        assert "output_path" not in result
        loader.sync_listings.assert_called_once()

    def test_supabase_failure_falls_back_to_json(self, pipeline_config):
        with patch("catalog.pipeline._get_supabase_loader", side_effect=ValueError("no credentials")):
            pipeline = CatalogPipeline(pipeline_config, use_sample=True)

        assert pipeline.use_supabase is False
        assert pipeline.save_local is True

    def test_empty_scrape_uses_sample(self, pipeline_config):
        with patch.object(NauticExtractor, "fetch_category", new=AsyncMock(return_value=[])):
            pipeline = CatalogPipeline(pipeline_config, categories=["anchors"], use_supabase=False)
            listings = asyncio.run(pipeline._extract())

        assert len(listings) == len(SAMPLE_LISTINGS)

    def test_scraped_categories_are_combined(self, pipeline_config):
        scraped = [Listing(id="1", title="Teak Oil 1L", price="€28.00")]
        with patch.object(NauticExtractor, "fetch_category", new=AsyncMock(return_value=scraped)):
            pipeline = CatalogPipeline(
                pipeline_config, categories=["anchors", "ropes"], use_supabase=False
            )
            listings = asyncio.run(pipeline._extract())

        assert len(listings) == 2

    def test_transform_skips_untitled(self, pipeline_config):
        pipeline = CatalogPipeline(pipeline_config, use_supabase=False)
        listings, groups = pipeline._transform(
            [Listing(title="   "), Listing(title="Teak Oil 1L", price="€28.00")]
        )
        assert pipeline.skipped_count == 1
        assert len(listings) == 1
        assert [g.group_id for g in groups] == ["teak-oil"]

    def test_failure_is_reported(self, pipeline_config):
        pipeline = CatalogPipeline(pipeline_config, use_supabase=False, use_sample=True)
        with patch.object(pipeline, "_transform", side_effect=RuntimeError("boom")):
            result = asyncio.run(pipeline.run())

        assert result == {"success": False, "error": "boom"}


# =============================================================================
# CLI
# =============================================================================


class TestCli:
    """Argument parsing and the local catalog commands."""

    def test_defaults(self):
        args = cli.parse_args([])
        assert args.pages == 3
        assert set(args.categories) == set(cli.AVAILABLE_CATEGORIES)
        assert not args.sample and not args.no_supabase

    def test_create_config(self, tmp_path):
        args = cli.parse_args(["-c", "ropes", "anchors", "-p", "1", "-o", str(tmp_path)])
        config = cli.create_config(args)
        assert set(config.scraper.categories) == {"ropes", "anchors"}
        assert config.scraper.pages_per_category == 1
        assert config.storage.json_path == tmp_path / "products.json"

    def test_show(self, tmp_path, swivel_listings):
        path = JsonCatalogLoader(tmp_path / "products.json").save_listings(swivel_listings)
        assert cli.main(["--show", str(path)]) == 0

    def test_show_empty_catalog(self, tmp_path):
        assert cli.main(["--show", str(tmp_path / "missing.json")]) == 1

    def test_search(self, tmp_path, swivel_listings):
        JsonCatalogLoader(tmp_path / "products.json").save_listings(swivel_listings)
        assert cli.main(["--search", "swivel", "--sort", "price-asc", "-o", str(tmp_path)]) == 0

    def test_pipeline_flags(self):
        run = AsyncMock(return_value={"success": True, "listings_extracted": 12, "groups": 10})
        with patch.object(cli, "run_pipeline", new=run):
            assert cli.main(["--sample", "--no-supabase"]) == 0

        kwargs = run.call_args.kwargs
        assert kwargs == {"use_supabase": False, "save_local": True, "use_sample": True}

    def test_pipeline_failure_exit_code(self):
        run = AsyncMock(return_value={"success": False, "error": "No listings extracted"})
        with patch.object(cli, "run_pipeline", new=run):
            assert cli.main(["--sample", "--no-supabase"]) == 1
