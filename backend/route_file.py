"""Routing table file — load into / save from a RIB.

One route per line, whitespace separated:

    destination netmask gateway iface metric

Blank lines and lines starting with `#` are ignored on load.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from models import Route
from rib import RIB

logger = logging.getLogger(__name__)

FIELDS = 5


class RouteFileError(Exception):
    def __init__(self, path: str | Path, message: str, line_no: int | None = None):
        self.path = Path(path)
        self.line_no = line_no
        where = f"{self.path}:{line_no}" if line_no is not None else str(self.path)
        super().__init__(f"{where}: {message}")


def format_route(route: Route) -> str:
    return f"{route.destination} {route.netmask} {route.gateway} {route.iface} {route.metric}"


def load_routing_table(rib: RIB, path: str | Path) -> int:
    """Add every record in `path` to `rib`. Returns the number of routes loaded."""
    path = Path(path)
    try:
        lines = path.read_text().splitlines()
    except OSError as exc:
        raise RouteFileError(path, f"cannot read routing table: {exc}") from exc

    loaded = 0
    for line_no, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        fields = line.split()
        if len(fields) != FIELDS:
            raise RouteFileError(path, f"expected {FIELDS} fields, got {len(fields)}", line_no)
        destination, netmask, gateway, iface, metric = fields
        try:
            metric_value = int(metric)
        except ValueError:
            raise RouteFileError(path, f"metric is not an integer: {metric!r}", line_no) from None

        result = rib.add(destination, netmask, gateway, iface, metric_value)
        if not result.ok:
            raise RouteFileError(path, f"rejected route {destination}/{netmask}: {result.status.value}", line_no)
        loaded += 1

    logger.info("Loaded %d routes from %s", loaded, path)
    return loaded


def save_routing_table(rib: RIB, path: str | Path) -> int:
    """Write `rib` to `path` in table order, replacing the file atomically."""
    path = Path(path)
    routes = rib.routes
    body = "".join(format_route(r) + "\n" for r in routes)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(body)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise RouteFileError(path, f"cannot write routing table: {exc}") from exc

    logger.info("Saved %d routes to %s", len(routes), path)
    return len(routes)
