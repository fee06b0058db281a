from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response

from ooh_billing.api.schemas import (
    InvoiceDocumentResponse,
    InvoiceItemsResponse,
    ReconciliationGapResponse,
)
from ooh_billing.core.config import settings
from ooh_billing.core.deps import get_image_cache, get_invoice_sources, get_renderers
from ooh_billing.core.rate_limit import limiter
from ooh_billing.services.invoice_document import (
    DocumentRenderer,
    ImageCache,
    TemplateNotFoundError,
    build_invoice_document,
    render_invoice_document,
)
from ooh_billing.services.reconciler import reconcile_invoice_items
from ooh_billing.services.sources import InvoiceSources, RecordNotFoundError

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("/{invoice_id}/items", response_model=InvoiceItemsResponse)
async def invoice_items(
    invoice_id: int,
    sources: InvoiceSources = Depends(get_invoice_sources),
):
    """Display-ready line items; stored items are never modified."""
    invoice = await sources.get_invoice(invoice_id)
    if invoice is None:
        raise RecordNotFoundError("Invoice", invoice_id)
    result = await reconcile_invoice_items(sources, invoice)
    return InvoiceItemsResponse(
        invoice_id=invoice_id,
        items=result.items,
        gaps=[ReconciliationGapResponse.model_validate(g) for g in result.gaps],
        regenerated=result.regenerated,
    )


@router.get("/{invoice_id}/document-data", response_model=InvoiceDocumentResponse)
async def invoice_document_data(
    invoice_id: int,
    sources: InvoiceSources = Depends(get_invoice_sources),
    image_cache: ImageCache = Depends(get_image_cache),
):
    data = await build_invoice_document(sources, invoice_id, image_cache)
    return InvoiceDocumentResponse.model_validate(data)


@router.post("/{invoice_id}/render")
@limiter.limit(settings.rate_limit_render)
async def render_invoice(
    request: Request,
    invoice_id: int,
    template: str = Query(..., min_length=1, max_length=64),
    sources: InvoiceSources = Depends(get_invoice_sources),
    image_cache: ImageCache = Depends(get_image_cache),
    renderers: dict[str, DocumentRenderer] = Depends(get_renderers),
):
    try:
        content = await render_invoice_document(
            sources, invoice_id, template, renderers, image_cache
        )
    except TemplateNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_501_NOT_IMPLEMENTED, detail=str(exc))
    return Response(content=content, media_type="application/octet-stream")
