"""Built-in tools served by ``mcpaudit serve``."""
