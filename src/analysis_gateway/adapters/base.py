"""Adapter interface for the upstream generation endpoint."""
from __future__ import annotations

from ..types import PromptSpec, UpstreamCallResult

class BaseUpstreamAdapter:
    def invoke(self, prompt: PromptSpec) -> UpstreamCallResult:
        """One call, no retries.

        HTTP and transport failures come back as results. A 2xx whose body is
        unusable raises UpstreamShapeError.
        """
        raise NotImplementedError
