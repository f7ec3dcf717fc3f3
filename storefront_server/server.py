"""MCP Server for the storefront catalog and cart."""

import asyncio
import json
import logging
from decimal import Decimal
from typing import Any, Optional

from mcp.server import Server
from mcp.types import Resource, Tool, TextContent
from pydantic import AnyUrl

from .catalog import stock_status
from .config import StorefrontConfig
from .models import DisplayMode, Notification, NotificationKind, Product, StockStatus
from .session import StorefrontSession

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("storefront-mcp-server")

# Initialize server
app = Server("storefront-mcp-server")

PLACEHOLDER_IMAGE_URL = "https://via.placeholder.com/200/cccccc/ffffff?text=No+Image"

# Global state
session: StorefrontSession
notifications: list[Notification] = []


def attach_session(new_session: StorefrontSession) -> None:
    """Make a session the one served by the tools and collect its notifications."""
    global session
    session = new_session
    session.notifier.subscribe(notifications.append)


def format_price(price: Decimal) -> str:
    return f"R$ {price:.2f}".replace(".", ",")


def format_stock(stock: int) -> str:
    status = stock_status(stock)
    if status == StockStatus.OUT:
        return "Out of stock"
    if status == StockStatus.LOW:
        return f"{stock} in stock"
    return "In stock"


def format_product(product: Product) -> list[str]:
    lines = [
        product.name,
        f"   ID: {product.id}",
        f"   Price: {format_price(product.price)}",
        f"   Stock: {format_stock(product.stock)}",
        f"   Image: {product.first_image or PLACEHOLDER_IMAGE_URL}",
    ]
    if product.description:
        lines.append(f"   Description: {product.description}")
    return lines


def format_products(products: list[Product], empty_text: str) -> str:
    if not products:
        return empty_text

    result_lines = [f"Found {len(products)} product(s):\n"]
    for i, product in enumerate(products, 1):
        product_lines = format_product(product)
        result_lines.append(f"\n{i}. {product_lines[0]}")
        result_lines.extend(product_lines[1:])
    return "\n".join(result_lines)


def format_cart() -> str:
    cart = session.cart
    if cart.is_empty:
        return "Your cart is empty"

    totals = cart.totals()
    result_lines = [f"Shopping Cart ({totals.total_items} items):\n"]
    for line in cart.lines:
        result_lines.append(
            f"  - {line.product.name} ({line.product.id}): "
            f"{format_price(line.product.price)} x {line.quantity}"
        )
    result_lines.append(f"\nTotal: {format_price(totals.total_price)}")
    return "\n".join(result_lines)


def format_image_navigation() -> str:
    nav = session.view.navigation()
    if nav.count == 0:
        return "Images: none"
    text = f"Image {nav.index + 1} of {nav.count}: {nav.current_image}"
    if nav.prev_visible:
        text += f"\nPrevious: {'enabled' if nav.prev_enabled else 'disabled'}"
        text += f" | Next: {'enabled' if nav.next_enabled else 'disabled'}"
    return text


def reply(text: Optional[str] = None) -> list[TextContent]:
    """Build a tool reply, prefixed with the notifications raised during the call."""
    result_lines = [
        f"{'✅' if n.kind == NotificationKind.SUCCESS else '❌'} {n.message}" for n in notifications
    ]
    notifications.clear()
    if text:
        result_lines.append(text)
    return [TextContent(type="text", text="\n".join(result_lines) or "OK")]


@app.list_resources()
async def list_resources() -> list[Resource]:
    """List available resources."""
    return [
        Resource(
            uri=AnyUrl("storefront://catalog"),
            name="Product Catalog",
            mimeType="application/json",
            description="Products matching the active search query",
        ),
        Resource(
            uri=AnyUrl("storefront://cart"),
            name="Shopping Cart",
            mimeType="application/json",
            description="Current shopping cart contents and totals",
        ),
    ]


@app.read_resource()
async def read_resource(uri: AnyUrl) -> str:
    """Read a resource by URI."""
    uri_str = str(uri)

    if uri_str == "storefront://catalog":
        products = session.visible_products()
        return json.dumps(
            {
                "query": session.view.query,
                "display_mode": session.view.display_mode.value,
                "products": [product.model_dump(mode="json") for product in products],
            },
            indent=2,
        )

    if uri_str == "storefront://cart":
        return json.dumps(session.cart.to_dict(), indent=2)

    raise ValueError(f"Unknown resource: {uri}")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """List available tools."""
    product_id_schema = {
        "type": "object",
        "properties": {
            "product_id": {
                "type": "string",
                "description": "Product ID from search results",
            },
        },
        "required": ["product_id"],
    }
    no_arguments = {"type": "object", "properties": {}}

    return [
        Tool(
            name="storefront_reload_feed",
            description="Download the product feed again and rebuild the catalog",
            inputSchema=no_arguments,
        ),
        Tool(
            name="storefront_search_products",
            description="Search products by name or description (empty query lists everything)",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Search term, case-insensitive",
                        "default": "",
                    },
                },
            },
        ),
        Tool(
            name="storefront_get_product",
            description="Open a product's details and its first image",
            inputSchema=product_id_schema,
        ),
        Tool(
            name="storefront_next_image",
            description="Show the next image of the open product",
            inputSchema=no_arguments,
        ),
        Tool(
            name="storefront_prev_image",
            description="Show the previous image of the open product",
            inputSchema=no_arguments,
        ),
        Tool(
            name="storefront_add_to_cart",
            description="Add one unit of a product to the cart (limited by stock)",
            inputSchema=product_id_schema,
        ),
        Tool(
            name="storefront_update_quantity",
            description="Increase or decrease a cart line by one unit; reaching zero removes it",
            inputSchema={
                "type": "object",
                "properties": {
                    "product_id": {
                        "type": "string",
                        "description": "Product ID in the cart",
                    },
                    "delta": {
                        "type": "integer",
                        "enum": [1, -1],
                        "description": "+1 to increase, -1 to decrease",
                    },
                },
                "required": ["product_id", "delta"],
            },
        ),
        Tool(
            name="storefront_remove_from_cart",
            description="Remove a product from the cart",
            inputSchema=product_id_schema,
        ),
        Tool(
            name="storefront_get_cart",
            description="Get current shopping cart contents",
            inputSchema=no_arguments,
        ),
        Tool(
            name="storefront_request_clear_cart",
            description="Ask to empty the cart; returns a token to confirm with",
            inputSchema=no_arguments,
        ),
        Tool(
            name="storefront_confirm_clear_cart",
            description="Confirm or cancel a pending request to empty the cart",
            inputSchema={
                "type": "object",
                "properties": {
                    "token": {
                        "type": "string",
                        "description": "Token from storefront_request_clear_cart",
                    },
                    "confirmed": {
                        "type": "boolean",
                        "description": "True to empty the cart, false to cancel",
                    },
                },
                "required": ["token", "confirmed"],
            },
        ),
        Tool(
            name="storefront_set_display_mode",
            description="Switch the catalog between grid and list display",
            inputSchema={
                "type": "object",
                "properties": {
                    "mode": {
                        "type": "string",
                        "enum": [mode.value for mode in DisplayMode],
                    },
                },
                "required": ["mode"],
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls."""
    arguments = arguments or {}
    try:
        if name == "storefront_reload_feed":
            loaded = await session.load_feed()
            if loaded:
                return reply(f"Catalog loaded with {len(session.catalog)} product(s)")
            return reply()

        elif name == "storefront_search_products":
            query = arguments.get("query", "")
            products = session.search(query)
            return reply(format_products(products, f"No products found for: {query}"))

        elif name == "storefront_get_product":
            product_id = arguments["product_id"]
            product = session.open_product(product_id)
            if product is None:
                return reply(f"Error: Product {product_id} not found")
            return reply("\n".join(format_product(product) + [format_image_navigation()]))

        elif name in ("storefront_next_image", "storefront_prev_image"):
            if not session.view.has_selection:
                return reply("Error: No product is open")
            if name == "storefront_next_image":
                session.next_image()
            else:
                session.prev_image()
            return reply(format_image_navigation())

        elif name == "storefront_add_to_cart":
            session.add_to_cart(arguments["product_id"])
            return reply(format_cart())

        elif name == "storefront_update_quantity":
            session.update_quantity(arguments["product_id"], int(arguments["delta"]))
            return reply(format_cart())

        elif name == "storefront_remove_from_cart":
            product_id = arguments["product_id"]
            if session.remove_from_cart(product_id):
                return reply(format_cart())
            return reply(f"Product {product_id} is not in the cart")

        elif name == "storefront_get_cart":
            return reply(format_cart())

        elif name == "storefront_request_clear_cart":
            request = session.request_clear_cart()
            return reply(
                "Emptying the cart needs confirmation.\n"
                f"Call storefront_confirm_clear_cart with token {request.token}"
            )

        elif name == "storefront_confirm_clear_cart":
            cleared = session.resolve_clear_cart(arguments["token"], bool(arguments["confirmed"]))
            if cleared:
                return reply()
            return reply("Cart left unchanged")

        elif name == "storefront_set_display_mode":
            mode = DisplayMode(arguments["mode"])
            products = session.set_display_mode(mode)
            return reply(f"Display mode: {mode.value} ({len(products)} product(s) shown)")

        else:
            return reply(f"Unknown tool: {name}")

    except Exception as e:
        logger.error(f"Error executing tool {name}: {e}", exc_info=True)
        return reply(f"Error: {str(e)}")


async def main(config: Optional[StorefrontConfig] = None) -> None:
    """Main entry point."""
    config = config or StorefrontConfig.from_env()
    logging.getLogger().setLevel(config.log_level)

    if config.feed_url:
        logger.info(f"Feed URL: {config.feed_url}")
    else:
        logger.warning("No feed URL configured (STOREFRONT_FEED_URL)")

    attach_session(StorefrontSession(config))
    await session.load_feed()

    logger.info("Starting Storefront MCP Server...")

    # Import and run the server
    from mcp.server.stdio import stdio_server

    try:
        async with stdio_server() as (read_stream, write_stream):
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
            )
    finally:
        await session.aclose()


if __name__ == "__main__":
    asyncio.run(main())
