"""Server-side gateway for AI market analysis requests."""
from .client import AnalysisGateway, GatewayResponse

__all__ = ["AnalysisGateway", "GatewayResponse"]
