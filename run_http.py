"""HTTP runner for MCP server (remote deployment)."""
import os
os.environ.setdefault("TS_MCP_MODE", "backend")

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.server import TransportSecuritySettings
from transcript_search_mcp.server import (
    app_lifespan,
    search_transcripts,
    list_transcripts,
    get_transcript,
    delete_transcript,
    find_mentions,
    help_resource,
    TOOL_ANNOTATIONS,
    DESTRUCTIVE_ANNOTATIONS,
)

server = FastMCP(
    "Transcript Search",
    instructions="Search uploaded audio transcripts by keyword or phrase with word-level timestamps",
    lifespan=app_lifespan,
    host="0.0.0.0",
    port=8402,
    transport_security=TransportSecuritySettings(enable_dns_rebinding_protection=False),
)

# Register tools with annotations
server.tool(annotations=TOOL_ANNOTATIONS)(search_transcripts)
server.tool(annotations=TOOL_ANNOTATIONS)(list_transcripts)
server.tool(annotations=TOOL_ANNOTATIONS)(get_transcript)
server.tool(annotations=DESTRUCTIVE_ANNOTATIONS)(delete_transcript)

# Register prompts
server.prompt()(find_mentions)

# Register resources
server.resource("transcripts://help")(help_resource)

server.run(transport="streamable-http")
