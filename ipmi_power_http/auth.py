"""
Credential Resolver

Token validity is always checked before endpoint existence so endpoint
names cannot be enumerated without a valid token, and a valid token never
learns about endpoints owned by other groups.
"""

from typing import Optional

from .errors import NotFound, Unauthorized
from .topology import Endpoint, Topology

BEARER_PREFIX = 'bearer '


def parse_bearer(auth_header: Optional[str]) -> Optional[str]:
    """Extract the token from an 'Authorization: Bearer <token>' header"""
    if not auth_header or not auth_header.lower().startswith(BEARER_PREFIX):
        return None
    token = auth_header[len(BEARER_PREFIX):].strip()
    return token or None


def authorize(topology: Topology, presented_token: Optional[str], endpoint_name: str) -> Endpoint:
    """
    Resolve an endpoint within the scope of the presented token.

    Args:
        topology: Loaded topology
        presented_token: Bearer token from the request (None if absent)
        endpoint_name: Endpoint identifier from the request path

    Returns:
        The Endpoint owned by the token's group

    Raises:
        Unauthorized: If no group owns the token
        NotFound: If the token's group has no such endpoint
    """
    group = topology.find_group_by_token(presented_token) if presented_token else None
    if group is None:
        raise Unauthorized()
    endpoint = topology.find_endpoint(group, endpoint_name)
    if endpoint is None:
        raise NotFound()
    return endpoint
