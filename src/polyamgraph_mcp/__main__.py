#!/usr/bin/env python3
"""Entry point for polyamgraph-mcp server."""

from polyamgraph_mcp.server import main
import asyncio

if __name__ == "__main__":
    asyncio.run(main())
