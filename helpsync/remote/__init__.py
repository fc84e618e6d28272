# Public surface of the remote package.
from .gateway import GatewayConfig, RemoteGateway

__all__ = ["GatewayConfig", "RemoteGateway"]
