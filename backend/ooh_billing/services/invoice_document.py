"""Assemble the data object handed to a document renderer.

The renderer itself (PDF, slide deck, ...) is an external collaborator
registered per template id; this module only gathers and reconciles the
data it needs and resolves the logo through an explicit image cache.
"""

import asyncio
import base64
import hashlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import redis.asyncio as aioredis
from tenacity import retry, stop_after_attempt, wait_exponential

from ooh_billing.core.cache import make_cache_key
from ooh_billing.core.config import settings
from ooh_billing.services.reconciler import ReconciliationGap, reconcile_invoice_items
from ooh_billing.services.sources import InvoiceSources, Record, RecordNotFoundError

logger = logging.getLogger(__name__)


class TemplateNotFoundError(LookupError):
    """Raised when no renderer is registered for a template id."""

    def __init__(self, template_id: str):
        self.template_id = template_id
        super().__init__(f"No renderer registered for template '{template_id}'")


@dataclass
class InvoiceDocumentData:
    invoice: Record
    client: Record
    campaign: Record | None
    items: list[dict]
    company: Record | None
    org_settings: Record | None
    logo: str | None = None
    gaps: list[ReconciliationGap] = field(default_factory=list)


class DocumentRenderer(Protocol):
    def render(self, data: InvoiceDocumentData, template_id: str) -> bytes: ...


# ---------------------------------------------------------------------------
# Image cache
# ---------------------------------------------------------------------------


class ImageCache:
    """Redis-backed cache of fetched images as data URIs.

    Owned by whoever builds documents and passed in explicitly; cache
    failures degrade to a miss.
    """

    def __init__(self, redis: aioredis.Redis, ttl: int = settings.image_cache_ttl):
        self._redis = redis
        self._ttl = ttl

    @staticmethod
    def key_for(url: str) -> str:
        return make_cache_key("image", hashlib.sha1(url.encode()).hexdigest())

    async def get(self, url: str) -> str | None:
        try:
            return await self._redis.get(self.key_for(url))
        except Exception:
            logger.exception("Image cache get failed for url=%s", url)
            return None

    async def set(self, url: str, data_uri: str) -> None:
        try:
            await self._redis.set(self.key_for(url), data_uri, ex=self._ttl)
        except Exception:
            logger.exception("Image cache set failed for url=%s", url)


@retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=1, max=10), reraise=True)
async def _download(url: str) -> tuple[bytes, str]:
    async with httpx.AsyncClient(timeout=settings.image_fetch_timeout) as client:
        resp = await client.get(url)
        resp.raise_for_status()
    content_type = resp.headers.get("content-type", "image/png").split(";")[0].strip()
    return resp.content, content_type


async def fetch_image_data_uri(url: str) -> str | None:
    """Download an image and return it as a base64 data URI, or None on failure."""
    try:
        content, content_type = await _download(url)
    except httpx.HTTPError:
        logger.warning("Could not fetch image %s", url, exc_info=True)
        return None
    return f"data:{content_type};base64," + base64.b64encode(content).decode()


async def resolve_logo(
    company: Mapping[str, Any] | None,
    org_settings: Mapping[str, Any] | None,
    image_cache: ImageCache | None = None,
) -> str | None:
    """Company logo, else organisation logo; data URIs pass through untouched."""
    url = (company or {}).get("logo_url") or (org_settings or {}).get("logo_url")
    if not url:
        return None
    if url.startswith("data:"):
        return url

    if image_cache is not None:
        cached = await image_cache.get(url)
        if cached:
            return cached

    data_uri = await fetch_image_data_uri(url)
    if data_uri and image_cache is not None:
        await image_cache.set(url, data_uri)
    return data_uri


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


async def _optional(coro_fn, record_id) -> Record | None:
    if record_id is None:
        return None
    return await coro_fn(record_id)


async def build_invoice_document(
    sources: InvoiceSources,
    invoice_id: int,
    image_cache: ImageCache | None = None,
) -> InvoiceDocumentData:
    """Load, reconcile and assemble everything a renderer needs.

    Fails only when the invoice or its client is missing; every other
    gap degrades to a best-effort document.
    """
    invoice = await sources.get_invoice(invoice_id)
    if invoice is None:
        raise RecordNotFoundError("Invoice", invoice_id)

    client, campaign, company, org_settings, reconciled = await asyncio.gather(
        sources.get_client(invoice["client_id"]),
        _optional(sources.get_campaign, invoice.get("campaign_id")),
        _optional(sources.get_company, invoice.get("company_id")),
        sources.get_organization_settings(),
        reconcile_invoice_items(sources, invoice),
    )
    if client is None:
        raise RecordNotFoundError("Client", invoice["client_id"])

    logo = await resolve_logo(company, org_settings, image_cache)

    return InvoiceDocumentData(
        invoice=invoice,
        client=client,
        campaign=campaign,
        items=reconciled.items,
        company=company,
        org_settings=org_settings,
        logo=logo,
        gaps=reconciled.gaps,
    )


async def render_invoice_document(
    sources: InvoiceSources,
    invoice_id: int,
    template_id: str,
    renderers: Mapping[str, DocumentRenderer],
    image_cache: ImageCache | None = None,
) -> bytes:
    renderer = renderers.get(template_id)
    if renderer is None:
        raise TemplateNotFoundError(template_id)
    data = await build_invoice_document(sources, invoice_id, image_cache)
    logger.info("Rendering invoice %s with template %s", invoice_id, template_id)
    return renderer.render(data, template_id)
