import json
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from printstudio.core.errors import CatalogError, RenderBackendError
from printstudio.domain.models import RenderOptions
from printstudio.services.batch_job import run_catalog_image_sync
from printstudio.services.catalog_client import CatalogProduct, Metafield
from printstudio.services.sinks import MemorySink


def _product(pid, images=1, dims=True, image_url="https://cdn.example.com/a.jpg"):
    metafields = []
    if dims:
        metafields = [
            Metafield("custom", "width", json.dumps({"value": "36", "unit": "in"})),
            Metafield("custom", "height", json.dumps({"value": "48", "unit": "in"})),
        ]
    return CatalogProduct(id=pid, title=f"Art {pid}", image_url=image_url, image_count=images, metafields=metafields)


class FakeCatalog:
    def __init__(self, products, fail_upload=False):
        self.products = products
        self.fail_upload = fail_upload
        self.uploads = []

    async def list_products(self, first=50):
        return list(self.products)

    async def upload_product_images(self, product_id, images):
        if self.fail_upload:
            raise CatalogError("upload rejected")
        self.uploads.append((product_id, [img.kind.value for img in images]))
        return len(images)


class FakeBackend:
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = 0

    async def render(self, request):
        self.calls += 1
        if self.fail and request.transparent:
            raise RenderBackendError("boom")
        return b"img"


def _no_wall_options(_product):
    return RenderOptions()


class TestCatalogImageSync(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        wall = Path(self._tmp.name) / "wall.jpg"
        Image.new("RGB", (200, 200)).save(wall)
        self.options = RenderOptions(wall_image_path=wall, wall_height_inches=114)

    async def asyncTearDown(self):
        self._tmp.cleanup()

    async def test_uploads_three_images_in_order(self):
        catalog = FakeCatalog([_product("1"), _product("2", images=4)])
        backend = FakeBackend()
        report = await run_catalog_image_sync(catalog, backend, MemorySink(), lambda p: self.options, delay_s=0)

        self.assertEqual([it.product_id for it in report.items], ["1"])
        self.assertEqual(report.items[0].status, "uploaded")
        self.assertEqual(catalog.uploads, [("1", ["gradient", "product", "transparent"])])
        self.assertEqual(backend.calls, 3)
        self.assertIsNotNone(report.completed_at)

    async def test_skips_products_without_dimensions_or_image(self):
        catalog = FakeCatalog([_product("1", dims=False), _product("2", image_url=None), _product("3")])
        report = await run_catalog_image_sync(catalog, FakeBackend(), MemorySink(), lambda p: self.options, delay_s=0)

        self.assertEqual([it.status for it in report.items], ["skipped", "skipped", "uploaded"])
        self.assertIn("metafield", report.items[0].error)
        self.assertEqual(report.count("skipped"), 2)

    async def test_partial_render_is_not_uploaded(self):
        catalog = FakeCatalog([_product("1"), _product("2")])
        report = await run_catalog_image_sync(catalog, FakeBackend(fail=True), MemorySink(), lambda p: self.options, delay_s=0)

        self.assertEqual([it.status for it in report.items], ["partial_failed", "partial_failed"])
        self.assertIn("transparent", report.items[0].error)
        self.assertEqual(catalog.uploads, [])

    async def test_missing_wall_reported_per_product(self):
        catalog = FakeCatalog([_product("1")])
        report = await run_catalog_image_sync(catalog, FakeBackend(), MemorySink(), _no_wall_options, delay_s=0)
        self.assertEqual(report.items[0].status, "partial_failed")
        self.assertIn("product", report.items[0].error)

    async def test_dry_run_and_limit(self):
        catalog = FakeCatalog([_product("1"), _product("2"), _product("3")])
        report = await run_catalog_image_sync(
            catalog, FakeBackend(), MemorySink(), lambda p: self.options, limit=2, upload=False, delay_s=0
        )
        self.assertEqual([it.status for it in report.items], ["rendered", "rendered"])
        self.assertEqual(len(report.items[0].files), 3)
        self.assertEqual(catalog.uploads, [])

    async def test_upload_failure_is_recorded(self):
        catalog = FakeCatalog([_product("1")], fail_upload=True)
        report = await run_catalog_image_sync(catalog, FakeBackend(), MemorySink(), lambda p: self.options, delay_s=0)
        self.assertEqual(report.items[0].status, "failed")
        self.assertIn("upload rejected", report.items[0].error)


if __name__ == "__main__":
    unittest.main()
