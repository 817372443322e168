#!/usr/bin/env python3
"""List all registered MCP tools."""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent / 'src'))

import asyncio
from config import Config
from server import create_server


async def list_tools():
    # Listing tools makes no CRM calls
    mcp = create_server(Config.from_env(), None)

    print("Registered MCP Tools:")
    print("=" * 60)

    tools = await mcp.list_tools()
    tool_names = sorted(t.name for t in tools)

    for idx, name in enumerate(tool_names, 1):
        print(f"{idx:2}. {name}")

    print("=" * 60)
    print(f"Total tools: {len(tool_names)}")

if __name__ == "__main__":
    asyncio.run(list_tools())
