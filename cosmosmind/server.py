"""
CosmosMind MCP Server
=====================
Serves the engine over MCP stdio.

GAME (1 tool):
  - cosmos_engine(action: resolve/score/adapt/record_session/reflect/profile/start/round/finish)
"""

import asyncio

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from cosmosmind import tools_game
from cosmosmind.config import SERVER_NAME, SERVER_VERSION
from cosmosmind.engine import CosmosEngine
from cosmosmind.log import log, setup


_TOOL_MODULES = [tools_game]

TOOLS = []
HANDLERS = {}
for _m in _TOOL_MODULES:
    TOOLS.extend(_m.TOOLS)
    HANDLERS.update(_m.HANDLERS)

server = Server(SERVER_NAME)


@server.list_tools()
async def list_tools() -> list[Tool]:
    return list(TOOLS)


@server.call_tool()
async def handle_tool(name: str, arguments: dict) -> list[TextContent]:
    handler = HANDLERS.get(name)
    if handler is None:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]
    try:
        return await handler(arguments or {})
    except Exception as e:
        log.exception(f"Tool {name} failed")
        return [TextContent(type="text", text=f"Error in {name}: {e}")]


async def main():
    setup()
    engine = CosmosEngine()
    tools_game.set_engine(engine)
    log.info(f"Starting {SERVER_NAME} v{SERVER_VERSION}")
    log.info(f"Save: {engine.store.path}")

    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())

    for session_id in list(engine.sessions):
        engine.close_session(session_id)
    engine.store.save()
    log.info("Server stopped")


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
