"""HTTP server exposing the storefront core as a REST API."""

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import StorefrontConfig
from .models import DisplayMode, Notification, Theme, ViewRegion
from .session import StorefrontSession

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-http-server")

# Global state
session: Optional[StorefrontSession] = None
config: Optional[StorefrontConfig] = None
notifications: list[Notification] = []
redraw_regions: set[ViewRegion] = set()


def attach_session(new_session: StorefrontSession) -> None:
    """Serve a session and collect its notifications and redraw requests."""
    global session
    session = new_session
    session.notifier.subscribe(notifications.append)
    session.subscribe_redraw(redraw_regions.update)


def get_session() -> StorefrontSession:
    if session is None:
        raise HTTPException(status_code=503, detail="Storefront session not started")
    return session


def outcome(success: bool, **payload: Any) -> dict[str, Any]:
    """Response body for an intent, with the notifications and redraws it caused."""
    body = {
        "success": success,
        "notifications": [n.model_dump(mode="json") for n in notifications],
        "redraw": sorted(region.value for region in redraw_regions),
        **payload,
    }
    notifications.clear()
    redraw_regions.clear()
    return body


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    # Startup
    logger.info("Starting Storefront HTTP Server...")
    owns_session = session is None
    if owns_session:
        attach_session(StorefrontSession(config or StorefrontConfig.from_env()))
        await session.load_feed()

    yield

    # Shutdown
    logger.info("Shutting down Storefront HTTP Server...")
    if owns_session:
        await session.aclose()


app = FastAPI(
    title="Storefront MCP Server",
    description="HTTP API for the storefront catalog and shopping cart",
    version="0.1.0",
    lifespan=lifespan,
)


# Request/Response Models
class ProductRequest(BaseModel):
    product_id: str


class UpdateQuantityRequest(BaseModel):
    product_id: str
    delta: int


class ConfirmClearRequest(BaseModel):
    token: str
    confirmed: bool


class DisplayModeRequest(BaseModel):
    mode: DisplayMode


class ThemeRequest(BaseModel):
    theme: Optional[Theme] = None


def cart_body(**extra: Any) -> dict[str, Any]:
    return {"cart": get_session().cart.to_dict(), **extra}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Storefront MCP Server",
        "version": "0.1.0",
        "description": "HTTP API for the storefront catalog and shopping cart",
        "endpoints": {
            "docs": "/docs",
            "health": "/health",
            "feed": {"reload": "POST /feed/reload"},
            "products": {
                "list": "GET /products?q=",
                "details": "GET /products/{product_id}",
                "next_image": "POST /products/{product_id}/images/next",
                "prev_image": "POST /products/{product_id}/images/prev",
            },
            "cart": {
                "get": "GET /cart",
                "add": "POST /cart/add",
                "update": "POST /cart/update",
                "remove": "POST /cart/remove",
                "clear": "POST /cart/clear",
                "confirm_clear": "POST /cart/clear/confirm",
            },
            "preferences": {
                "display_mode": "GET|POST /display-mode",
                "theme": "GET|POST /theme",
            },
        },
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "products": len(session.catalog) if session else 0,
        "loading": session.is_loading if session else False,
    }


@app.post("/feed/reload")
async def reload_feed():
    """Download the feed again and rebuild the catalog."""
    current = get_session()
    loaded = await current.load_feed()
    return outcome(loaded, count=len(current.catalog))


# Product endpoints
@app.get("/products")
async def list_products(q: str = ""):
    """Products matching a case-insensitive name/description query."""
    current = get_session()
    products = current.search(q)
    return outcome(
        True,
        query=current.view.query,
        display_mode=current.view.display_mode.value,
        count=len(products),
        products=[product.model_dump(mode="json") for product in products],
    )


def detail_body(current: StorefrontSession) -> dict[str, Any]:
    product = current.selected_product
    return {
        "product": product.model_dump(mode="json") if product else None,
        "navigation": current.view.navigation().model_dump(mode="json"),
    }


@app.get("/products/{product_id}")
async def get_product(product_id: str):
    """Open a product in the detail view."""
    current = get_session()
    if current.open_product(product_id) is None:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")
    return outcome(True, **detail_body(current))


@app.post("/products/{product_id}/images/{direction}")
async def move_image(product_id: str, direction: str):
    """Move the detail-view image cursor ("next" or "prev")."""
    current = get_session()
    if direction not in ("next", "prev"):
        raise HTTPException(status_code=404, detail=f"Unknown direction: {direction}")
    if current.view.selected_product_id != product_id:
        raise HTTPException(status_code=409, detail=f"Product {product_id} is not open")

    moved = current.next_image() if direction == "next" else current.prev_image()
    return outcome(moved, **detail_body(current))


# Cart endpoints
@app.get("/cart")
async def get_cart():
    """Get current shopping cart."""
    return cart_body()


@app.post("/cart/add")
async def add_to_cart(request: ProductRequest):
    """Add one unit of a product to the cart."""
    current = get_session()
    if current.find_product(request.product_id) is None:
        raise HTTPException(status_code=404, detail=f"Product {request.product_id} not found")
    added = current.add_to_cart(request.product_id)
    return outcome(added, **cart_body())


@app.post("/cart/update")
async def update_cart(request: UpdateQuantityRequest):
    """Step a cart line up or down by one unit."""
    current = get_session()
    try:
        changed = current.update_quantity(request.product_id, request.delta)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return outcome(changed, **cart_body())


@app.post("/cart/remove")
async def remove_from_cart(request: ProductRequest):
    """Remove a product from the cart."""
    removed = get_session().remove_from_cart(request.product_id)
    return outcome(removed, **cart_body())


@app.post("/cart/clear")
async def request_clear_cart():
    """Ask to empty the cart; the returned token must be confirmed."""
    clear_request = get_session().request_clear_cart()
    return outcome(True, token=clear_request.token)


@app.post("/cart/clear/confirm")
async def confirm_clear_cart(request: ConfirmClearRequest):
    """Confirm or cancel a pending clear."""
    cleared = get_session().resolve_clear_cart(request.token, request.confirmed)
    return outcome(cleared, **cart_body())


# Preference endpoints
@app.get("/display-mode")
async def get_display_mode():
    return {"display_mode": get_session().view.display_mode.value}


@app.post("/display-mode")
async def set_display_mode(request: DisplayModeRequest):
    """Switch display mode and re-run the active query."""
    current = get_session()
    products = current.set_display_mode(request.mode)
    return outcome(
        True,
        display_mode=current.view.display_mode.value,
        query=current.view.query,
        count=len(products),
        products=[product.model_dump(mode="json") for product in products],
    )


@app.get("/theme")
async def get_theme():
    return {"theme": get_session().theme.value}


@app.post("/theme")
async def set_theme(request: ThemeRequest):
    """Set the theme, or toggle it when no theme is given."""
    current = get_session()
    theme = current.set_theme(request.theme) if request.theme else current.toggle_theme()
    return {"theme": theme.value}


def run_http_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
    server_config: Optional[StorefrontConfig] = None,
):
    """
    Run the HTTP server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to bind to (default: 8000)
        reload: Enable hot reloading (default: False)
        server_config: Configuration; read from the environment when omitted
    """
    global config
    import uvicorn

    config = server_config
    logger.info(f"Starting server on {host}:{port} (reload={'enabled' if reload else 'disabled'})")

    if reload:
        # Hot reloading runs the app in a fresh process that reads config from the environment
        if server_config is not None:
            os.environ.update(server_config.to_env())
        uvicorn.run(
            "storefront_server.http_server:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["storefront_server"],
            log_level="info",
        )
    else:
        uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    run_http_server(reload=True)
