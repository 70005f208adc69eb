from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx

from printstudio.core.errors import CatalogError, ConfigurationError
from printstudio.domain.models import GeneratedImageVariant

logger = logging.getLogger("printstudio")

PRODUCTS_QUERY = """
query Products($first: Int!) {
  products(first: $first, sortKey: UPDATED_AT, reverse: true) {
    edges {
      node {
        id
        title
        featuredImage { url }
        images(first: 10) { edges { node { id } } }
        metafields(first: 10) {
          edges { node { namespace key value type } }
        }
      }
    }
  }
}
"""

STAGED_UPLOADS_MUTATION = """
mutation StagedUploads($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets {
      url
      resourceUrl
      parameters { name value }
    }
    userErrors { field message }
  }
}
"""

CREATE_MEDIA_MUTATION = """
mutation CreateMedia($productId: ID!, $media: [CreateMediaInput!]!) {
  productCreateMedia(productId: $productId, media: $media) {
    media { alt mediaContentType status }
    mediaUserErrors { field message }
  }
}
"""


@dataclass
class Metafield:
    namespace: str
    key: str
    value: str
    type: Optional[str] = None


@dataclass
class CatalogProduct:
    id: str
    title: str
    image_url: Optional[str]
    image_count: int = 0
    metafields: List[Metafield] = field(default_factory=list)


def _metafield_number(metafields: Sequence[Metafield], key: str) -> float:
    mf = next((m for m in metafields if m.key == key), None)
    if mf is None:
        raise ConfigurationError(f"{key} metafield not found")
    try:
        raw = json.loads(mf.value)
    except (TypeError, ValueError):
        raw = mf.value
    value = raw.get("value") if isinstance(raw, dict) else raw
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{key} metafield is not numeric: {mf.value!r}") from exc
    if isinstance(raw, dict) and raw.get("unit") not in (None, "in", "INCHES"):
        raise ConfigurationError(f"{key} metafield unit must be inches, got {raw.get('unit')!r}")
    return number


def extract_dimensions(metafields: Sequence[Metafield]) -> tuple[float, float]:
    """Return (width_in, height_in) from `width` / `height` dimension metafields."""
    return _metafield_number(metafields, "width"), _metafield_number(metafields, "height")


def _product_from_node(node: Dict[str, Any]) -> CatalogProduct:
    featured = node.get("featuredImage") or {}
    images = ((node.get("images") or {}).get("edges")) or []
    metafields = [
        Metafield(
            namespace=e["node"].get("namespace") or "",
            key=e["node"].get("key") or "",
            value=e["node"].get("value") or "",
            type=e["node"].get("type"),
        )
        for e in ((node.get("metafields") or {}).get("edges") or [])
    ]
    return CatalogProduct(
        id=node["id"],
        title=node.get("title") or "",
        image_url=featured.get("url"),
        image_count=len(images),
        metafields=metafields,
    )


class ShopifyCatalogClient:
    def __init__(
        self,
        shop: str | None = None,
        access_token: str | None = None,
        api_version: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.shop = (shop or os.getenv("SHOPIFY_SHOP_NAME") or "").strip()
        self.access_token = (access_token or os.getenv("SHOPIFY_ACCESS_TOKEN") or "").strip()
        self.api_version = (api_version or os.getenv("SHOPIFY_API_VERSION") or "2024-07").strip()
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.shop and self.access_token)

    @property
    def endpoint(self) -> str:
        host = self.shop if "." in self.shop else f"{self.shop}.myshopify.com"
        return f"https://{host}/admin/api/{self.api_version}/graphql.json"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        if not self.configured:
            raise ConfigurationError("Shopify not configured (need SHOPIFY_SHOP_NAME + SHOPIFY_ACCESS_TOKEN)")
        headers = {"X-Shopify-Access-Token": self.access_token, "Content-Type": "application/json"}
        try:
            async with self._client() as client:
                resp = await client.post(self.endpoint, headers=headers, json={"query": query, "variables": variables})
        except httpx.HTTPError as exc:
            raise CatalogError(f"Shopify request failed: {exc}") from exc
        if resp.status_code >= 400:
            raise CatalogError(f"Shopify request failed status={resp.status_code} body={resp.text}")
        payload = resp.json()
        if payload.get("errors"):
            raise CatalogError(f"Shopify GraphQL errors: {payload['errors']}")
        return payload.get("data") or {}

    async def list_products(self, first: int = 50) -> List[CatalogProduct]:
        data = await self._graphql(PRODUCTS_QUERY, {"first": int(first)})
        edges = ((data.get("products") or {}).get("edges")) or []
        return [_product_from_node(e["node"]) for e in edges]

    async def _stage_upload(self, image: GeneratedImageVariant) -> str:
        data = await self._graphql(
            STAGED_UPLOADS_MUTATION,
            {
                "input": [
                    {
                        "filename": image.file_name,
                        "mimeType": image.mime_type,
                        "resource": "PRODUCT_IMAGE",
                        "httpMethod": "POST",
                        "fileSize": str(len(image.data)),
                    }
                ]
            },
        )
        result = data.get("stagedUploadsCreate") or {}
        if result.get("userErrors"):
            raise CatalogError(f"staged upload rejected: {result['userErrors']}")
        targets = result.get("stagedTargets") or []
        if not targets:
            raise CatalogError("staged upload returned no target")
        target = targets[0]

        form = {p["name"]: p["value"] for p in target.get("parameters") or []}
        try:
            async with self._client() as client:
                resp = await client.post(
                    target["url"],
                    data=form,
                    files={"file": (image.file_name, image.data, image.mime_type)},
                )
        except httpx.HTTPError as exc:
            raise CatalogError(f"staged upload failed: {exc}") from exc
        if resp.status_code >= 400:
            raise CatalogError(f"staged upload failed status={resp.status_code}")
        return target["resourceUrl"]

    async def upload_product_images(self, product_id: str, images: Sequence[GeneratedImageVariant]) -> int:
        """Attach images to a product in the given order; returns the count attached."""
        media = []
        for image in images:
            resource_url = await self._stage_upload(image)
            media.append({"originalSource": resource_url, "alt": image.file_name, "mediaContentType": "IMAGE"})
        if not media:
            return 0

        data = await self._graphql(CREATE_MEDIA_MUTATION, {"productId": product_id, "media": media})
        result = data.get("productCreateMedia") or {}
        if result.get("mediaUserErrors"):
            raise CatalogError(f"productCreateMedia rejected: {result['mediaUserErrors']}")
        logger.info("product media attached", extra={"props": {"product_id": product_id, "count": len(media)}})
        return len(media)
