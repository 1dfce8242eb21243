"""
Topology Model

Immutable in-memory view of the configured groups, their bearer tokens and
the IPMI endpoints each group owns. Built once at startup and shared by
reference; nothing mutates it afterwards.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from .errors import TopologyError


@dataclass(frozen=True)
class Endpoint:
    """One machine's management controller."""
    # Unique within the owning group
    name: str
    # Host reachable over IPMI (lanplus)
    address: str
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Group:
    """Authorization scope: one token governing a set of endpoints."""
    name: str
    token: str = field(repr=False)
    endpoints: Tuple[Endpoint, ...] = ()


class Topology:
    """All groups, indexed by token and endpoint name."""

    def __init__(self, groups: Iterable[Group]):
        self._groups = tuple(groups)
        by_token: Dict[str, Group] = {}
        endpoints: Dict[str, Mapping[str, Endpoint]] = {}
        names = set()
        for group in self._groups:
            if group.name in names:
                raise TopologyError(f"Duplicate group name '{group.name}'")
            names.add(group.name)
            if not group.token:
                raise TopologyError(f"Group '{group.name}' has an empty token")
            if group.token in by_token:
                # Never name the token itself
                raise TopologyError(
                    f"Groups '{by_token[group.token].name}' and '{group.name}' share a token")
            by_token[group.token] = group

            by_name: Dict[str, Endpoint] = {}
            for endpoint in group.endpoints:
                if endpoint.name in by_name:
                    raise TopologyError(
                        f"Duplicate endpoint '{endpoint.name}' in group '{group.name}'")
                by_name[endpoint.name] = endpoint
            endpoints[group.token] = MappingProxyType(by_name)

        self._by_token = MappingProxyType(by_token)
        self._endpoints = MappingProxyType(endpoints)

    @property
    def groups(self) -> Tuple[Group, ...]:
        return self._groups

    def find_group_by_token(self, token: str) -> Optional[Group]:
        if not token:
            return None
        return self._by_token.get(token)

    def find_endpoint(self, group: Group, endpoint_name: str) -> Optional[Endpoint]:
        # Only groups that belong to this topology resolve
        if self._by_token.get(group.token) is not group:
            return None
        return self._endpoints[group.token].get(endpoint_name)

    def __len__(self):
        return len(self._groups)

    def __repr__(self):
        return f'Topology(groups={[g.name for g in self._groups]})'
