"""Book Lending MCP Server - FastMCP Implementation

Serves the reservation lifecycle of a book-lending back office over MCP.

Features exposed:
- Resources: local catalog, reservations, fees, external catalog status
- Tools: create and return reservations, catalog sync, stock updates
"""

import logging
import signal
import sys
from typing import Any

from fastmcp import FastMCP

from .config import ServerConfig, get_config
from .database.session import get_db_manager
from .resources import all_resources
from .tools import all_tools

# stderr for logs, stdout for MCP protocol
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stderr)],
)

logger = logging.getLogger(__name__)

config = get_config()

mcp = FastMCP(
    name=config.server_name,
    version=config.server_version,
    instructions=(
        "Book Lending MCP Server - rentals of a local book catalog. Use resources to "
        "browse books, reservations and fees, and tools to rent or return books and "
        "to maintain the catalog. Error messages are in Spanish."
    ),
)

for resource in all_resources:
    logger.debug("Registering resource: %s with URI: %s", resource["name"], resource["uri"])
    try:
        mcp.resource(
            resource["uri"],
            name=resource["name"],
            description=resource["description"],
            mime_type=resource["mime_type"],
        )(resource["handler"])
    except Exception:
        logger.exception("Failed to register resource %s", resource["name"])
        raise

logger.info("Registered %d resources", len(all_resources))

for tool in all_tools:
    logger.debug("Registering tool: %s", tool["name"])
    try:
        mcp.tool(
            name=tool["name"],
            description=tool["description"],
        )(tool["handler"])
    except Exception:
        logger.exception("Failed to register tool %s", tool["name"])
        raise

logger.info("Registered %d tools", len(all_tools))


def configure_logging(settings: ServerConfig) -> None:
    """Apply the configured log level; development mode keeps FastMCP verbose."""
    if settings.is_development:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("fastmcp").setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled - verbose protocol logging active")
    else:
        logging.getLogger().setLevel(settings.log_level)
        logging.getLogger("fastmcp").setLevel(logging.WARNING)


def prepare_database() -> None:
    """Create missing tables and check the database answers."""
    db_manager = get_db_manager()
    db_manager.init_database()
    if not db_manager.verify_connection():
        raise RuntimeError(f"Database at {db_manager.database_url} is not reachable")


def run_server() -> None:
    """Run the MCP server on the configured transport.

    stdio: stdin receives JSON-RPC requests, stdout sends responses.
    streamable_http: served on the configured host and port.
    """
    configure_logging(config)

    def signal_handler(signum: int, _frame: Any) -> None:
        logger.info("Received signal %s, initiating shutdown...", signum)
        get_db_manager().close()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    prepare_database()

    try:
        if config.transport == "stdio":
            logger.info(
                "Starting %s v%s on stdio transport", config.server_name, config.server_version
            )
            mcp.run(transport="stdio")
        else:
            logger.info(
                "Starting %s v%s on http://%s:%d",
                config.server_name,
                config.server_version,
                config.http_host,
                config.http_port,
            )
            mcp.run(transport="streamable-http", host=config.http_host, port=config.http_port)
    except Exception:
        logger.exception("Fatal error in MCP server")
        sys.exit(1)
    finally:
        get_db_manager().close()


def main() -> None:
    """Main entry point for the MCP server."""
    try:
        logger.info("=" * 60)
        logger.info("Book Lending MCP Server")
        logger.info("Version: %s", config.server_version)
        logger.info("Transport: %s", config.transport)
        logger.info("Database: %s", config.database_path)
        logger.info("Catalog API: %s", config.catalog_api_url)
        logger.info("=" * 60)

        run_server()

    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception:
        logger.exception("Failed to start MCP server")
        sys.exit(1)


if __name__ == "__main__":
    main()
