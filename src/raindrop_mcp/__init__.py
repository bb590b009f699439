"""Raindrop MCP Server - Model Context Protocol integration for Raindrop.io.

This package exposes a Raindrop.io bookmark account to AI assistants
as MCP tools, resources and prompts over STDIO.

Modules:
- server: stdio MCP server implementation
- registry: tool, resource and resource template registry
- tools: MCP tool definitions
- handlers: Tool implementation handlers
- resources: static resources and resource templates
- schemas: input and output schemas
- validation: schema validation helpers
- formatters: Response shaping utilities
- streaming: chunked delivery of large results
- client: Raindrop.io REST API client
"""
from .config import VERSION

__version__ = VERSION

from . import formatters
from . import tools
from . import handlers

__all__ = ["formatters", "tools", "handlers", "__version__"]
