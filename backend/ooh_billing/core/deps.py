from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from ooh_billing.core.cache import get_redis
from ooh_billing.db.session import async_session_factory
from ooh_billing.services.invoice_document import DocumentRenderer, ImageCache
from ooh_billing.services.sources import InvoiceSources, SqlInvoiceSources


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async database session.

    The session is automatically closed when the request finishes.
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_invoice_sources() -> InvoiceSources:
    """Read collaborator for reconciliation; opens its own sessions per read."""
    return SqlInvoiceSources(async_session_factory)


def get_image_cache() -> ImageCache:
    return ImageCache(get_redis())


def get_renderers(request: Request) -> dict[str, DocumentRenderer]:
    return request.app.state.renderers
