"""
Data models for the routing information base.

`Route` is the value stored per table row. The pydantic models describe
the HTTP API payloads built around it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


# --- Table entry ---

@dataclass
class Route:
    """One RIB row. IPv4 address fields are stored in canonical form."""
    destination: str
    netmask: str          # dotted mask (IPv4), mask literal or prefix length (IPv6)
    gateway: str
    iface: str
    metric: int = 0
    ip_version: int = 4


# --- API Models ---

class AddRouteRequest(BaseModel):
    destination: str
    netmask: str
    gateway: str
    iface: str
    metric: int = 0


class UpdateRouteRequest(BaseModel):
    destination: str
    netmask: str
    new_netmask: str
    new_gateway: str
    new_iface: str
    new_metric: int = 0


class RouteView(BaseModel):
    """Read-only copy of a table row, safe to hand out of the RIB lock."""
    destination: str
    netmask: str
    gateway: str
    iface: str
    metric: int
    ip_version: int = Field(4, description="4 or 6")

    @classmethod
    def from_route(cls, route: Route) -> "RouteView":
        return cls(
            destination=route.destination,
            netmask=route.netmask,
            gateway=route.gateway,
            iface=route.iface,
            metric=route.metric,
            ip_version=route.ip_version,
        )


class RouteTable(BaseModel):
    entries: int
    routes: list[RouteView] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    note: Optional[str] = None
