"""Server configuration.

ServerConfig is a frozen dataclass, immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServerConfig(port=3053, enable_logging=True)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000

    # Logging
    enable_logging: bool = False  # Log every dispatched request at INFO
    log_level: str = "info"  # Forwarded to the ASGI server
