# kartcounter/utils/__init__.py
from .addr import validate_port, format_address, split_address
from .errors import (
    CounterError, ConfigError, DiscoveryError, NetworkError,
    TransportError, ProtocolError
)
from .log import setup_logging, get_logger
