"""Listing gateway - serves filtered, sorted and paginated listing pages."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from spherestay.api.client import ApiClient
from spherestay.api.errors import ApiError, ErrorKind
from spherestay.api.query import QueryCache
from spherestay.api.services import PropertyService
from spherestay.booking import BookingDraft, InvalidBookingError
from spherestay.config.settings import Settings
from spherestay.listing.pipeline import ListingResult, ListingService
from spherestay.listing.views import configure_views
from spherestay.models.store import LocalStore
from spherestay.presentation.formatter import format_page
from spherestay.session import Session

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

BAD_GATEWAY_KINDS = (ErrorKind.NETWORK, ErrorKind.MALFORMED)


class SphereStayServer:
    """Wires the store, session, API client, query cache and listing views together."""

    def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings or Settings.load()
        self.store = LocalStore(self.settings.store_path)
        self.session = Session(self.store)
        self.client = ApiClient(
            self.settings.api_base_url,
            token_provider=self.session.token,
            timeout=self.settings.request_timeout,
            transport=transport,
        )
        self.session.bind(self.client)
        self.cache = QueryCache(
            self.client,
            stale_time=self.settings.stale_time,
            cache_time=self.settings.cache_time,
            max_retries=self.settings.max_retries,
            retry_delay=self.settings.retry_delay,
        )
        self.listings = ListingService(self.cache, configure_views(self.settings.views))
        self.properties = PropertyService(self.client)
        self.scheduler = AsyncIOScheduler()

    async def prune_cache(self):
        """Evict idle query cache entries."""
        removed = self.cache.prune()
        logger.debug(f"Cache prune removed {removed} entries, {len(self.cache)} remain")

    async def view_property(self, property_id: str):
        """Fetch a property and record it as recently viewed."""
        entity = await self.properties.get(property_id)
        await self.store.add_recently_viewed(entity.id or property_id)
        return entity

    async def quote(self, payload: dict) -> BookingDraft:
        """Price a booking for a property without submitting it."""
        property_id = payload.get("propertyId")
        if not property_id:
            raise InvalidBookingError("propertyId is required")
        try:
            guests = int(payload.get("guests", 1))
        except (TypeError, ValueError) as e:
            raise InvalidBookingError("guests must be a number") from e

        entity = await self.properties.get(property_id)
        return BookingDraft.for_entity(
            entity,
            check_in=payload.get("checkInDate"),
            check_out=payload.get("checkOutDate"),
            guests=guests,
            service_fee_rate=self.settings.service_fee_rate,
        )

    async def startup(self):
        """Initialize server components."""
        # Validate settings
        errors = self.settings.validate()
        if errors:
            for error in errors:
                logger.warning(f"Config warning: {error}")

        # Connect to local store
        await self.store.connect()

        # Schedule cache pruning
        self.scheduler.add_job(
            self.prune_cache,
            IntervalTrigger(seconds=self.settings.cache_prune_interval),
            id="prune_cache",
            replace_existing=True,
        )
        self.scheduler.start()
        logger.info(f"Scheduled cache pruning every {self.settings.cache_prune_interval}s")

    async def shutdown(self):
        """Clean up server components."""
        self.scheduler.shutdown(wait=False)
        await self.client.close()
        await self.store.close()


# Global server instance
server: SphereStayServer | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan handler."""
    global server
    server = SphereStayServer()
    await server.startup()
    yield
    await server.shutdown()


app = FastAPI(title="SphereStay Listing Gateway", lifespan=lifespan)


@app.exception_handler(ApiError)
async def handle_api_error(request: Request, exc: ApiError):
    """Relay upstream failures with their status; transport problems become 502."""
    status = 502 if exc.kind in BAD_GATEWAY_KINDS or exc.status is None else exc.status
    return JSONResponse(
        status_code=status,
        content={"error": exc.kind.value, "message": exc.message, "status": exc.status},
    )


@app.exception_handler(InvalidBookingError)
async def handle_invalid_booking(request: Request, exc: InvalidBookingError):
    return JSONResponse(status_code=400, content={"error": "invalid_booking", "message": str(exc)})


def _listing_response(result: ListingResult) -> dict:
    page = result.page
    return {
        "view": result.view,
        "query": result.query_string,
        "page": page.page,
        "pageSize": page.page_size,
        "totalPages": page.total_pages,
        "filteredCount": result.filtered_count,
        "totalCount": result.total_count,
        "isEmpty": result.is_empty,
        "isStale": result.is_stale,
        "items": [entity.to_dict() for entity in page.items],
        "options": result.options,
    }


async def _load_listing(view: str, request: Request) -> ListingResult | None:
    if view.lower() not in server.listings.views:
        return None
    return await server.listings.load(view, request.url.query)


def _unknown_view(view: str) -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"error": "not_found", "message": f"Unknown listing view: {view}"},
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/listings/{view}")
async def get_listing(view: str, request: Request):
    """One page of a listing view, driven by the query string."""
    result = await _load_listing(view, request)
    if result is None:
        return _unknown_view(view)
    return _listing_response(result)


@app.get("/listings/{view}/text", response_class=PlainTextResponse)
async def get_listing_text(view: str, request: Request):
    """The same page rendered as plain-text cards."""
    result = await _load_listing(view, request)
    if result is None:
        return _unknown_view(view)
    return format_page(result)


@app.get("/properties/{property_id}")
async def get_property(property_id: str):
    """Property detail; records the view in the recently viewed list."""
    entity = await server.view_property(property_id)
    return entity.to_dict()


@app.get("/recently-viewed")
async def recently_viewed():
    return {"ids": await server.store.get_recently_viewed()}


@app.post("/bookings/quote")
async def booking_quote(request: Request):
    """Price breakdown for a prospective booking."""
    payload = await request.json()
    if not isinstance(payload, dict):
        raise InvalidBookingError("Request body must be a JSON object")
    draft = await server.quote(payload)
    return draft.quote()


def main():
    """Entry point for running the server."""
    import uvicorn

    settings = Settings.load()
    uvicorn.run(
        "spherestay.server:app",
        host=settings.host,
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
