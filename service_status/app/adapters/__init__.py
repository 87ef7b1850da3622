"""
Adapters package for the status gateway.

Contains the HTTP client for the upstream account directory. The adapter
encapsulates:

- Endpoint, credential and filter variables
- GraphQL request and error shapes
- Mapping of raw responses onto gateway records

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .sonar_client import SonarClient, UpstreamError, UpstreamQueryError

__all__ = [
    "SonarClient",
    "UpstreamError",
    "UpstreamQueryError",
]
