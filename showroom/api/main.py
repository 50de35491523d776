"""FastAPI application for Showroom."""

from dataclasses import asdict
from datetime import datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from .. import __version__
from ..catalog.analytics import summarize
from ..catalog.filters import CatalogFilter, apply_filter
from ..catalog.providers import checkout_links
from ..context import AppContext, build_context
from ..errors import AuthenticationError, RecordNotFound, StorageError, ValidationError
from ..financing.amortization import quote_installment, quote_term_options
from ..storage.models import COLLECTIONS, MemberIn, ProviderLinkIn, VehicleIn
from ..views import AdminDashboardView, CatalogView, VehicleDetailView


class LoginRequest(BaseModel):
    username: str
    password: str


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the API around an application context.

    Args:
        context: Wired services, defaults to one built from global config
    """
    ctx = context or build_context()
    config = ctx.config
    storefront = config.storefront

    app = FastAPI(
        title="Showroom API",
        description="Car-dealership storefront and admin console",
        version=__version__,
    )
    app.state.context = ctx

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------
    # Error mapping
    # ------------------------------------------------------------------

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": "validation failed", "errors": exc.errors})

    @app.exception_handler(RecordNotFound)
    async def not_found_handler(request: Request, exc: RecordNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(f"Storage error on {request.url.path}: {exc}")
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(AuthenticationError)
    async def auth_error_handler(request: Request, exc: AuthenticationError):
        return JSONResponse(status_code=401, content={"detail": str(exc)})

    def require_admin(x_admin_token: Optional[str] = Header(None)):
        ctx.session.require(x_admin_token or "")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @app.on_event("startup")
    async def startup_event():
        """Run on application startup."""
        ctx.supervisor.configure_jobs()
        ctx.supervisor.start()
        logger.info("Showroom API starting up")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Run on application shutdown."""
        ctx.supervisor.stop()
        logger.info("Showroom API shutting down")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Showroom API",
            "version": __version__,
            "status": "running",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "change_feed": "connected" if ctx.subscriber.healthy else "reconnecting",
            "timestamp": datetime.utcnow().isoformat(),
        }

    # ------------------------------------------------------------------
    # Storefront
    # ------------------------------------------------------------------

    @app.get("/vehicles")
    async def list_vehicles(
        min_price: int = Query(0, ge=0, description="Minimum price"),
        max_price: Optional[int] = Query(None, ge=0, description="Maximum price"),
        make: Optional[List[str]] = Query(None, description="Selected makes"),
        q: str = Query("", description="Search make or model"),
    ):
        """List vehicles, newest first, with optional filtering."""
        vehicles = ctx.db.list("vehicles", "created_at", "desc")
        catalog_filter = CatalogFilter(
            min_price=min_price,
            max_price=max_price,
            makes=make or [],
            query=q,
            fuzzy_threshold=storefront.fuzzy_search_threshold,
        )
        results = apply_filter(vehicles, catalog_filter)
        return {"vehicles": results, "total": len(results)}

    @app.get("/vehicles/{vehicle_id}")
    async def get_vehicle(vehicle_id: int):
        vehicle = ctx.db.get("vehicles", vehicle_id)
        if not vehicle:
            raise HTTPException(status_code=404, detail="Vehicle not found")
        return vehicle

    @app.get("/vehicles/{vehicle_id}/financing")
    async def get_financing(
        vehicle_id: int,
        down_payment: Optional[int] = Query(None, ge=0, description="Down payment"),
        term: Optional[int] = Query(None, ge=1, description="Term in months"),
    ):
        """Financing quotes for every term option, or one term when given."""
        vehicle = ctx.db.get("vehicles", vehicle_id)
        if not vehicle:
            raise HTTPException(status_code=404, detail="Vehicle not found")

        if term is not None:
            quotes = [quote_installment(vehicle["price"], down_payment, term, terms=ctx.terms)]
        else:
            quotes = quote_term_options(vehicle["price"], down_payment, ctx.terms)

        return {
            "vehicle_id": vehicle_id,
            "price": vehicle["price"],
            "annual_rate_percent": ctx.terms.annual_rate_percent,
            "quotes": [asdict(quote) for quote in quotes],
        }

    @app.get("/provider-links")
    async def list_provider_links():
        """Provider links offered at checkout."""
        links = ctx.db.list("provider_links", "name", "asc")
        return {"provider_links": checkout_links(links, storefront.hidden_provider_keywords)}

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    @app.post("/admin/login")
    async def login(body: LoginRequest):
        token = await ctx.session.login(body.username, body.password)
        return {"token": token, "username": ctx.session.username}

    @app.post("/admin/logout")
    async def logout(_: None = Depends(require_admin)):
        ctx.session.logout()
        return {"message": "Logged out"}

    @app.post("/admin/vehicles", status_code=201)
    async def create_vehicle(body: VehicleIn, _: None = Depends(require_admin)):
        return ctx.listings.create_vehicle(body.model_dump(exclude_none=True))

    @app.put("/admin/vehicles/{vehicle_id}")
    async def update_vehicle(vehicle_id: int, body: VehicleIn, _: None = Depends(require_admin)):
        changes = ctx.listings.update_vehicle(vehicle_id, body.model_dump(exclude_unset=True))
        return {"id": vehicle_id, "updated": changes}

    @app.delete("/admin/vehicles/{vehicle_id}")
    async def delete_vehicle(vehicle_id: int, _: None = Depends(require_admin)):
        ctx.listings.delete_vehicle(vehicle_id)
        return {"id": vehicle_id, "deleted": True}

    @app.get("/admin/members")
    async def list_members(_: None = Depends(require_admin)):
        return {"members": ctx.db.list("membership_records", "created_at", "desc")}

    @app.post("/admin/members", status_code=201)
    async def create_member(body: MemberIn, _: None = Depends(require_admin)):
        return ctx.memberships.save_member(None, body.model_dump(exclude_none=True))

    @app.put("/admin/members/{member_id}")
    async def update_member(member_id: int, body: MemberIn, _: None = Depends(require_admin)):
        changes = ctx.memberships.save_member(member_id, body.model_dump(exclude_unset=True))
        return {"id": member_id, "updated": changes}

    @app.delete("/admin/members/{member_id}")
    async def delete_member(member_id: int, _: None = Depends(require_admin)):
        ctx.memberships.delete_member(member_id)
        return {"id": member_id, "deleted": True}

    @app.get("/admin/provider-links")
    async def admin_provider_links(_: None = Depends(require_admin)):
        return {"provider_links": ctx.db.list("provider_links", "name", "asc")}

    @app.post("/admin/provider-links", status_code=201)
    async def create_provider_link(body: ProviderLinkIn, _: None = Depends(require_admin)):
        return ctx.providers.save_provider_link(None, body.model_dump(exclude_none=True))

    @app.put("/admin/provider-links/{link_id}")
    async def update_provider_link(link_id: int, body: ProviderLinkIn, _: None = Depends(require_admin)):
        changes = ctx.providers.save_provider_link(link_id, body.model_dump(exclude_unset=True))
        return {"id": link_id, "updated": changes}

    @app.delete("/admin/provider-links/{link_id}")
    async def delete_provider_link(link_id: int, _: None = Depends(require_admin)):
        ctx.providers.delete_provider_link(link_id)
        return {"id": link_id, "deleted": True}

    @app.get("/admin/analytics")
    async def analytics(_: None = Depends(require_admin)):
        vehicles = ctx.db.list("vehicles", "created_at", "desc")
        members = ctx.db.list("membership_records", "created_at", "desc")
        return summarize(vehicles, members)

    # ------------------------------------------------------------------
    # Live views
    # ------------------------------------------------------------------

    async def _serve_view(websocket: WebSocket, view):
        await websocket.accept()
        try:
            async with view:
                while True:
                    await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug(f"{type(view).__name__} client disconnected")

    @app.websocket("/ws/catalog")
    async def catalog_stream(websocket: WebSocket):
        """Push the catalog snapshot on connect and after every change."""

        async def render(view: CatalogView):
            await websocket.send_json(
                {"vehicles": view.vehicles, "provider_links": view.provider_links}
            )

        view = CatalogView(
            ctx.db,
            ctx.subscriber,
            storefront.hidden_provider_keywords,
            storefront.fuzzy_search_threshold,
            on_render=render,
        )
        await _serve_view(websocket, view)

    @app.websocket("/ws/vehicles/{vehicle_id}")
    async def vehicle_stream(websocket: WebSocket, vehicle_id: int):
        """Push the vehicle, its financing options and checkout links."""

        async def render(view: VehicleDetailView):
            await websocket.send_json(
                {
                    "vehicle": view.vehicle,
                    "financing": [asdict(quote) for quote in view.financing()],
                    "provider_links": view.provider_links,
                }
            )

        view = VehicleDetailView(
            ctx.db,
            ctx.subscriber,
            vehicle_id,
            ctx.terms,
            storefront.hidden_provider_keywords,
            on_render=render,
        )
        await _serve_view(websocket, view)

    @app.websocket("/ws/admin")
    async def admin_stream(websocket: WebSocket, token: str = ""):
        """Push the admin dashboard snapshot; requires a session token."""
        try:
            ctx.session.require(token)
        except AuthenticationError:
            await websocket.close(code=4401)
            return

        async def render(view: AdminDashboardView):
            await websocket.send_json(
                {
                    "vehicles": view.vehicles,
                    "members": view.members,
                    "provider_links": view.provider_links,
                    "analytics": view.analytics(),
                }
            )

        view = AdminDashboardView(
            ctx.db,
            ctx.subscriber,
            ctx.session,
            ctx.listings,
            ctx.memberships,
            ctx.providers,
            on_render=render,
        )
        await _serve_view(websocket, view)

    @app.websocket("/ws/changes/{collection}")
    async def change_stream(websocket: WebSocket, collection: str):
        """Notify the client whenever a collection changes."""
        if collection not in COLLECTIONS:
            await websocket.close(code=4404)
            return

        await websocket.accept()

        async def notify():
            await websocket.send_json({"collection": collection, "event": "changed"})

        try:
            async with ctx.subscriber.subscription(collection, notify):
                while True:
                    await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug(f"Change stream client for {collection} disconnected")

    return app
