"""MCP server that exposes beanjump's bean navigation to MCP clients.

This server wraps the `beanjump` CLI tool, providing structured access to
injection-point resolution and bean lookup through the Model Context Protocol.
"""

import json
import subprocess
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent


app = Server("beanjump")


@app.list_tools()
async def list_tools() -> list[Tool]:
    """Declare available tools."""
    return [
        Tool(
            name="bean_resolve",
            description=(
                "Resolve the Spring injection points on a line of a Java file to the bean "
                "definitions that can satisfy them. Returns candidates ranked by score: "
                "100 qualifier match, 90 bean name match, 80 @Primary bean, 70 type match, "
                "60 subtype match. Handles @Autowired, @Resource, @Inject and Lombok "
                "generated constructors."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "location": {
                        "type": "string",
                        "description": (
                            "Injection point in format 'file_path:line' with a 1-indexed line. "
                            "Example: 'src/main/java/com/example/web/UserController.java:18'"
                        ),
                    },
                    "root": {
                        "type": "string",
                        "description": "Project root to index (defaults to the working directory)",
                    },
                },
                "required": ["location"],
            },
        ),
        Tool(
            name="bean_find",
            description=(
                "List Spring bean definitions (@Component, @Service, @Repository, @Controller, "
                "@RestController classes and @Bean factory methods), optionally filtered by "
                "type or bean name. Returns structured JSON with location, scope, qualifiers "
                "and @Primary status."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "type": {
                        "type": "string",
                        "description": "Simple or qualified type name (e.g., 'UserService')",
                    },
                    "name": {
                        "type": "string",
                        "description": "Bean name (e.g., 'userService')",
                    },
                    "root": {
                        "type": "string",
                        "description": "Project root to index (defaults to the working directory)",
                    },
                },
            },
        ),
    ]


@app.call_tool()
async def call_tool(name: str, arguments: Any) -> list[TextContent]:
    """Handle tool calls by routing to appropriate CLI commands."""
    if name == "bean_resolve":
        return await _handle_resolve(arguments["location"], arguments.get("root"))
    elif name == "bean_find":
        return await _handle_find(arguments.get("type"), arguments.get("name"), arguments.get("root"))

    raise ValueError(f"Unknown tool: {name}")


async def _handle_resolve(location: str, root: str | None = None) -> list[TextContent]:
    """Handle bean_resolve tool calls.

    Args:
        location: Injection point as "file_path:line" (1-indexed)
        root: Optional project root

    Returns:
        List containing a single TextContent with formatted candidates
    """
    command = ["beanjump", "resolve", location]
    if root:
        command.extend(["--root", root])

    try:
        result = subprocess.run(command, capture_output=True, text=True, check=True)
        resolutions = json.loads(result.stdout)

        lines = []
        for resolution in resolutions:
            use_site = resolution["use_site"]
            target = use_site.get("parameter_name") or use_site.get("member_name") or "?"
            candidates = resolution["candidates"]
            if not candidates:
                lines.append(f"{target} ({use_site['requested_type']}): no bean found")
                continue
            lines.append(f"{target} ({use_site['requested_type']}):")
            for c in candidates:
                loc = c["location"]
                lines.append(
                    f"  [{c['score']}] {c['label']} '{c['name']}' "
                    f"at {loc['file_id']}:{loc['line'] + 1} ({c['reason']})"
                )

        return [TextContent(type="text", text="\n".join(lines))]

    except subprocess.CalledProcessError as e:
        error_msg = e.stderr.strip() if e.stderr else str(e)
        return [TextContent(type="text", text=f"Error running beanjump resolve: {error_msg}")]
    except json.JSONDecodeError as e:
        return [TextContent(type="text", text=f"Error parsing beanjump output: {e}")]
    except Exception as e:
        return [TextContent(type="text", text=f"Unexpected error: {e}")]


async def _handle_find(type_name: str | None, name: str | None, root: str | None = None) -> list[TextContent]:
    """Handle bean_find tool calls."""
    command = ["beanjump", "beans"]
    if root:
        command.append(root)
    if type_name:
        command.extend(["--type", type_name])
    if name:
        command.extend(["--name", name])

    try:
        result = subprocess.run(command, capture_output=True, text=True, check=True)
        declarations = json.loads(result.stdout)

        if not declarations:
            return [TextContent(type="text", text="No beans found")]

        return [TextContent(type="text", text=json.dumps(declarations, indent=2))]

    except subprocess.CalledProcessError as e:
        error_msg = e.stderr.strip() if e.stderr else str(e)
        return [TextContent(type="text", text=f"Error running beanjump beans: {error_msg}")]
    except json.JSONDecodeError as e:
        return [TextContent(type="text", text=f"Error parsing beanjump output: {e}")]
    except Exception as e:
        return [TextContent(type="text", text=f"Unexpected error: {e}")]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await app.run(read_stream, write_stream, app.create_initialization_options())


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
