import json
import unittest

import httpx

from printstudio.core.errors import CatalogError, ConfigurationError
from printstudio.domain.models import GeneratedImageVariant, VariantKind
from printstudio.services.catalog_client import Metafield, ShopifyCatalogClient, extract_dimensions


def _dim(key, value, unit="in"):
    return Metafield(namespace="custom", key=key, value=json.dumps({"value": value, "unit": unit}))


class TestExtractDimensions(unittest.TestCase):
    def test_parses_json_values(self):
        self.assertEqual(extract_dimensions([_dim("height", "48"), _dim("width", 36.5)]), (36.5, 48.0))

    def test_plain_number_value(self):
        mfs = [Metafield("custom", "width", "30"), Metafield("custom", "height", "31")]
        self.assertEqual(extract_dimensions(mfs), (30.0, 31.0))

    def test_missing_metafield(self):
        with self.assertRaises(ConfigurationError):
            extract_dimensions([_dim("width", 36)])

    def test_wrong_unit(self):
        with self.assertRaises(ConfigurationError):
            extract_dimensions([_dim("width", 36, unit="cm"), _dim("height", 48)])

    def test_not_numeric(self):
        with self.assertRaises(ConfigurationError):
            extract_dimensions([_dim("width", "wide"), _dim("height", 48)])


def _client(handler):
    return ShopifyCatalogClient(
        shop="demo-store", access_token="shpat_x", api_version="2024-07", transport=httpx.MockTransport(handler)
    )


class TestShopifyCatalogClient(unittest.IsolatedAsyncioTestCase):
    async def test_list_products(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["token"] = request.headers.get("X-Shopify-Access-Token")
            seen["body"] = json.loads(request.content)
            node = {
                "id": "gid://shopify/Product/1",
                "title": "Lemons",
                "featuredImage": {"url": "https://cdn.shopify.com/lemons.jpg"},
                "images": {"edges": [{"node": {"id": "img1"}}]},
                "metafields": {"edges": [{"node": {"namespace": "custom", "key": "width", "value": "30", "type": "dimension"}}]},
            }
            return httpx.Response(200, json={"data": {"products": {"edges": [{"node": node}]}}})

        products = await _client(handler).list_products(first=5)

        self.assertEqual(seen["url"], "https://demo-store.myshopify.com/admin/api/2024-07/graphql.json")
        self.assertEqual(seen["token"], "shpat_x")
        self.assertEqual(seen["body"]["variables"], {"first": 5})
        (product,) = products
        self.assertEqual(product.title, "Lemons")
        self.assertEqual(product.image_count, 1)
        self.assertEqual(product.image_url, "https://cdn.shopify.com/lemons.jpg")
        self.assertEqual(product.metafields[0].key, "width")

    async def test_graphql_errors_raise(self):
        client = _client(lambda request: httpx.Response(200, json={"errors": [{"message": "Throttled"}]}))
        with self.assertRaises(CatalogError):
            await client.list_products()

    async def test_http_error_raises(self):
        client = _client(lambda request: httpx.Response(500, text="oops"))
        with self.assertRaises(CatalogError):
            await client.list_products()

    async def test_unconfigured(self):
        client = ShopifyCatalogClient(shop="", access_token="")
        client.shop, client.access_token = "", ""
        with self.assertRaises(ConfigurationError):
            await client.list_products()

    async def test_upload_images_in_order(self):
        staged_names = []
        media_payload = {}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "uploads.example.com":
                return httpx.Response(201)
            body = json.loads(request.content)
            if "stagedUploadsCreate" in body["query"]:
                name = body["variables"]["input"][0]["filename"]
                staged_names.append(name)
                target = {
                    "url": "https://uploads.example.com/bucket",
                    "resourceUrl": f"https://uploads.example.com/bucket/{name}",
                    "parameters": [{"name": "key", "value": name}],
                }
                return httpx.Response(200, json={"data": {"stagedUploadsCreate": {"stagedTargets": [target], "userErrors": []}}})
            media_payload.update(body["variables"])
            return httpx.Response(200, json={"data": {"productCreateMedia": {"media": [], "mediaUserErrors": []}}})

        images = [
            GeneratedImageVariant(kind=k, data=b"img", file_name=f"{k.value}.jpeg", width=1, height=1)
            for k in (VariantKind.GRADIENT, VariantKind.PRODUCT, VariantKind.TRANSPARENT)
        ]
        count = await _client(handler).upload_product_images("gid://shopify/Product/1", images)

        self.assertEqual(count, 3)
        self.assertEqual(staged_names, ["gradient.jpeg", "product.jpeg", "transparent.jpeg"])
        self.assertEqual(media_payload["productId"], "gid://shopify/Product/1")
        self.assertEqual(
            [m["originalSource"] for m in media_payload["media"]],
            [f"https://uploads.example.com/bucket/{n}" for n in staged_names],
        )

    async def test_upload_user_errors(self):
        def handler(request):
            return httpx.Response(
                200, json={"data": {"stagedUploadsCreate": {"stagedTargets": [], "userErrors": [{"message": "bad"}]}}}
            )

        image = GeneratedImageVariant(kind=VariantKind.GRADIENT, data=b"x", file_name="g.jpeg", width=1, height=1)
        with self.assertRaises(CatalogError):
            await _client(handler).upload_product_images("gid://shopify/Product/1", [image])


if __name__ == "__main__":
    unittest.main()
