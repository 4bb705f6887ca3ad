"""Demo tool server for a small coffee shop.

Run it directly, or let ``diymcp`` spawn it::

    python -m diymcp.server.coffee_shop
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import sys
from typing import Any

from diymcp.server import MCPServer

logger = logging.getLogger(__name__)

DRINKS: list[dict[str, Any]] = [
    {
        "name": "Latte",
        "price": 5,
        "description": "A latte is a coffee drink made with espresso and steamed milk.",
    },
    {
        "name": "Mocha",
        "price": 6,
        "description": "A mocha is a coffee drink made with espresso and chocolate.",
    },
    {
        "name": "Flat White",
        "price": 7,
        "description": "A flat white is a coffee drink made with espresso and steamed milk.",
    },
]

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize(name: str) -> str:
    """Lowercase and drop everything but letters and digits ("Flat-White" -> "flatwhite")."""
    return _NON_ALNUM.sub("", (name or "").lower())


def build_server() -> MCPServer:
    server = MCPServer("Coffee Shop Server", "1.0.0")

    @server.tool("getDrinkNames", "Get the names of the drinks in the shop")
    def get_drink_names(arguments: dict[str, Any]) -> str:
        return json.dumps({"names": [drink["name"] for drink in DRINKS]})

    @server.tool(
        "getDrinkInfo",
        "Get more info about the drink",
        {
            "type": "object",
            "properties": {"name": {"type": "string"}},
            "required": ["name"],
        },
    )
    def get_drink_info(arguments: dict[str, Any]) -> str:
        wanted = normalize(str(arguments.get("name", "")))
        logger.debug("getDrinkInfo %r -> %r", arguments.get("name"), wanted)
        for drink in DRINKS:
            if normalize(drink["name"]) == wanted:
                return json.dumps(drink)
        return json.dumps({"error": "Drink not found"})

    @server.resource("menu://app", "menu")
    def menu() -> str:
        return json.dumps(DRINKS)

    return server


def main() -> None:
    # stdout carries the protocol; diagnostics go to stderr.
    logging.basicConfig(level=logging.INFO, stream=sys.stderr, format="%(name)s: %(message)s")
    asyncio.run(build_server().serve_stdio())


if __name__ == "__main__":
    main()
