"""
Longest-prefix-match resolution over a RIB.

Read-only: the matcher never mutates the table it is given.
"""

from __future__ import annotations

import logging
from typing import Optional

import iputils
from models import Route
from rib import RIB, RIBResult, RIBStatus

logger = logging.getLogger(__name__)

DEFAULT_ROUTE = "0.0.0.0"


class RouteMatcher:
    """
    Picks the route a packet for a destination would take.

    IPv4 only. IPv6 destinations are recognised but always yield NO_MATCH.
    """

    def __init__(self, rib: RIB):
        self.rib = rib

    def match(self, destination: str) -> RIBResult:
        ok, ip_version = iputils.validate(destination)
        if not ok:
            return RIBResult(status=RIBStatus.INVALID_ADDRESS)
        if ip_version == 4:
            return self.match_ipv4(destination.strip())
        if ip_version == 6:
            return self.match_ipv6(destination.strip())
        return RIBResult(status=RIBStatus.INVALID_ADDRESS)

    def match_ipv4(self, destination: str) -> RIBResult:
        if not self.rib.initialized or not len(self.rib):
            return RIBResult(status=RIBStatus.NO_MATCH)

        best: Optional[Route] = None
        best_len = -1
        for route in self.rib.routes:
            if route.ip_version != 4:
                continue
            net_addr = iputils.network_address(destination, route.netmask)
            if not iputils.equal(net_addr, route.destination):
                continue
            prefix_len = iputils.netmask_to_prefix_length(route.netmask)
            # Equal length keeps the earlier entry
            if best is None or prefix_len > best_len:
                best = route
                best_len = prefix_len

        if best is not None:
            logger.debug("%s matched %s/%s (/%d)", destination, best.destination, best.netmask, best_len)
            return RIBResult(route=best)

        fallback = self.rib.find(DEFAULT_ROUTE, DEFAULT_ROUTE)
        if fallback.ok:
            logger.debug("%s resolved by default route", destination)
            return fallback
        return RIBResult(status=RIBStatus.NO_MATCH)

    def match_ipv6(self, destination: str) -> RIBResult:
        # IPv6 destinations never resolve
        return RIBResult(status=RIBStatus.NO_MATCH)
