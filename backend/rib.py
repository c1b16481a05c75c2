"""
RIB store — an ordered, in-memory table of routes.

Insertion order is part of the contract: the LPM matcher breaks prefix-length
ties in favour of the earlier entry, so removal always compacts in place
instead of swapping with the last row.

Every operation returns a `RIBResult`. Expected failures (bad literal or
interface name, duplicate key, missing entry, destroyed table) are
reported through the result status, never raised. Not thread-safe;
callers that share a RIB across threads must hold one lock around every
call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import iputils
from models import Route

logger = logging.getLogger(__name__)

WILDCARD_NETMASK = "*"


class RIBStatus(str, Enum):
    OK = "OK"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    NO_MATCH = "NO_MATCH"
    DUPLICATE_RECORD = "DUPLICATE_RECORD"
    NOT_EXISTS = "NOT_EXISTS"
    UNINITIALIZED = "UNINITIALIZED"
    ALLOCATION_FAILURE = "ALLOCATION_FAILURE"  # never returned; MemoryError propagates


@dataclass
class RIBResult:
    status: RIBStatus = RIBStatus.OK
    route: Optional[Route] = None

    @property
    def ok(self) -> bool:
        return self.status is RIBStatus.OK


def _fail(status: RIBStatus) -> RIBResult:
    return RIBResult(status=status)


def _netmask_version(netmask: str, ip_version: int) -> bool:
    """Netmask must be a literal of the entry's family, or a prefix length for IPv6."""
    if ip_version == 6 and iputils.is_prefix_length(netmask):
        return True
    ok, version = iputils.validate(netmask)
    return ok and version == ip_version


def _valid_iface(iface: str) -> bool:
    """Interface names are single non-empty tokens; the table file is whitespace separated."""
    return isinstance(iface, str) and bool(iface) and iface.split() == [iface]


def _store_form(address: str, ip_version: int) -> str:
    address = address.strip()
    if ip_version == 4:
        return iputils.canonicalize(address)
    return address


class RIB:
    """
    Routing information base.

    Created empty; `close()` destroys it, after which every operation
    reports UNINITIALIZED.
    """

    def __init__(self):
        self._routes: Optional[list[Route]] = []

    # --- Lifecycle ---

    @property
    def initialized(self) -> bool:
        return self._routes is not None

    def close(self) -> RIBResult:
        if self._routes is None:
            return _fail(RIBStatus.UNINITIALIZED)
        self._routes = None
        return RIBResult()

    # --- Views ---

    @property
    def entries(self) -> int:
        return len(self._routes) if self._routes is not None else 0

    def __len__(self) -> int:
        return self.entries

    @property
    def routes(self) -> tuple[Route, ...]:
        """Snapshot of the table in insertion order."""
        return tuple(self._routes or ())

    def _index_of(self, destination: str, netmask: str, wildcard: bool) -> Optional[int]:
        for i, route in enumerate(self._routes or ()):
            if not iputils.equal(route.destination, destination):
                continue
            if iputils.equal(route.netmask, netmask) or (wildcard and netmask == WILDCARD_NETMASK):
                return i
        return None

    # --- Table manipulation ---

    def add(self, destination: str, netmask: str, gateway: str, iface: str, metric: int) -> RIBResult:
        """Append a route. The (destination, netmask) pair must be new."""
        if self._routes is None:
            return _fail(RIBStatus.UNINITIALIZED)

        ok, ip_version = iputils.validate(destination)
        if not ok or ip_version not in (4, 6):
            return _fail(RIBStatus.INVALID_ADDRESS)
        if not _netmask_version(netmask or "", ip_version):
            return _fail(RIBStatus.INVALID_ADDRESS)
        gw_ok, gw_version = iputils.validate(gateway)
        if not gw_ok or gw_version != ip_version:
            return _fail(RIBStatus.INVALID_ADDRESS)
        if not _valid_iface(iface):
            return _fail(RIBStatus.INVALID_ADDRESS)

        if self._index_of(destination, netmask, wildcard=False) is not None:
            return _fail(RIBStatus.DUPLICATE_RECORD)

        route = Route(
            destination=_store_form(destination, ip_version),
            netmask=_store_form(netmask, ip_version),
            gateway=_store_form(gateway, ip_version),
            iface=iface,
            metric=int(metric),
            ip_version=ip_version,
        )
        self._routes.append(route)
        logger.debug("Added %s/%s via %s dev %s metric %d", route.destination, route.netmask,
                     route.gateway, route.iface, route.metric)
        return RIBResult(route=route)

    def delete(self, destination: str, netmask: str) -> RIBResult:
        """
        Remove the first entry matching (destination, netmask).

        A netmask of `*` matches any mask for the destination; only the first
        such entry in table order goes per call.
        """
        if self._routes is None:
            return _fail(RIBStatus.UNINITIALIZED)
        if not self._routes:
            return _fail(RIBStatus.NOT_EXISTS)

        idx = self._index_of(destination, netmask, wildcard=True)
        if idx is None:
            return _fail(RIBStatus.NOT_EXISTS)

        route = self._routes.pop(idx)
        logger.debug("Deleted %s/%s", route.destination, route.netmask)
        return RIBResult(route=route)

    def update(
        self,
        destination: str,
        netmask: str,
        new_netmask: str,
        new_gateway: str,
        new_iface: str,
        new_metric: int,
    ) -> RIBResult:
        """Replace netmask, gateway, iface and metric of an existing entry in place."""
        if self._routes is None:
            return _fail(RIBStatus.UNINITIALIZED)

        gw_ok, ip_version = iputils.validate(new_gateway)
        if not gw_ok:
            return _fail(RIBStatus.INVALID_ADDRESS)
        mask_ok, _ = iputils.validate(new_netmask)
        if not mask_ok and not (ip_version == 6 and iputils.is_prefix_length(new_netmask)):
            return _fail(RIBStatus.INVALID_ADDRESS)
        if not _valid_iface(new_iface):
            return _fail(RIBStatus.INVALID_ADDRESS)

        idx = self._index_of(destination, netmask, wildcard=False)
        if idx is None:
            return _fail(RIBStatus.NOT_EXISTS)

        route = self._routes[idx]
        if route.ip_version != ip_version or not _netmask_version(new_netmask, ip_version):
            return _fail(RIBStatus.INVALID_ADDRESS)

        clash = self._index_of(route.destination, new_netmask, wildcard=False)
        if clash is not None and clash != idx:
            return _fail(RIBStatus.DUPLICATE_RECORD)

        route.netmask = _store_form(new_netmask, ip_version)
        route.gateway = _store_form(new_gateway, ip_version)
        route.iface = new_iface
        route.metric = int(new_metric)
        logger.debug("Updated %s/%s via %s dev %s metric %d", route.destination, route.netmask,
                     route.gateway, route.iface, route.metric)
        return RIBResult(route=route)

    def clear(self) -> RIBResult:
        if self._routes is None:
            return _fail(RIBStatus.UNINITIALIZED)
        self._routes.clear()
        logger.debug("Routing table cleared")
        return RIBResult()

    # --- Table queries ---

    def find(self, destination: str, netmask: str = WILDCARD_NETMASK) -> RIBResult:
        """
        Exact lookup. Same predicate as delete(), `*` included.

        The returned route is the live table row: a later update() changes
        it, and delete()/clear() detach it from the table.
        """
        if self._routes is None:
            return _fail(RIBStatus.UNINITIALIZED)
        idx = self._index_of(destination, netmask, wildcard=True)
        if idx is None:
            return _fail(RIBStatus.NO_MATCH)
        return RIBResult(route=self._routes[idx])
