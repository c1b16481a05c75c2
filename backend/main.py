"""RIB HTTP API."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException

from config import ConfigError, Settings, load_settings
from matcher import RouteMatcher
from models import AddRouteRequest, RouteTable, RouteView, UpdateRouteRequest
from rib import RIB, RIBResult, RIBStatus, WILDCARD_NETMASK
from route_file import RouteFileError, load_routing_table, save_routing_table

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

try:
    settings = load_settings()
except ConfigError as e:
    logger.warning("Could not load settings: %s", e)
    settings = Settings()

logging.getLogger().setLevel(settings.log_level.upper())

app = FastAPI(title=settings.api_title, description="Routing information base", version="1.0.0")

table_file: Path = settings.routing_table_file

# One lock around every RIB call; the table itself does no locking.
_lock = threading.Lock()
rib = RIB()
# Set when the table file could not be loaded; commit is refused until a rollback succeeds.
load_error: Optional[str] = None


def load_table() -> None:
    """Replace the in-memory RIB with the contents of the table file."""
    global rib, load_error
    fresh = RIB()
    if table_file.exists():
        try:
            load_routing_table(fresh, table_file)
        except RouteFileError as e:
            logger.warning("Could not load routing table: %s", e)
            load_error = str(e)
            rib.close()
            rib = RIB()
            return
    rib.close()
    rib = fresh
    load_error = None


load_table()

_STATUS_CODES = {
    RIBStatus.INVALID_ADDRESS: 400,
    RIBStatus.NOT_EXISTS: 404,
    RIBStatus.NO_MATCH: 404,
    RIBStatus.DUPLICATE_RECORD: 409,
    RIBStatus.UNINITIALIZED: 503,
}


def _check(result: RIBResult) -> Optional[RouteView]:
    if not result.ok:
        raise HTTPException(_STATUS_CODES.get(result.status, 500), result.status.value)
    return RouteView.from_route(result.route) if result.route is not None else None


def _table(note: Optional[str] = None) -> RouteTable:
    return RouteTable(
        entries=len(rib),
        routes=[RouteView.from_route(r) for r in rib.routes],
        warnings=[load_error] if load_error else [],
        note=note,
    )


@app.get("/api/routes")
def dump_routes():
    with _lock:
        return _table()


@app.post("/api/routes")
def add_route(request: AddRouteRequest):
    with _lock:
        route = _check(rib.add(request.destination, request.netmask, request.gateway, request.iface, request.metric))
    return {"status": RIBStatus.OK.value, "route": route}


@app.put("/api/routes")
def update_route(request: UpdateRouteRequest):
    with _lock:
        route = _check(rib.update(
            request.destination,
            request.netmask,
            request.new_netmask,
            request.new_gateway,
            request.new_iface,
            request.new_metric,
        ))
    return {"status": RIBStatus.OK.value, "route": route}


@app.delete("/api/routes")
def delete_route(destination: str, netmask: str = WILDCARD_NETMASK):
    with _lock:
        route = _check(rib.delete(destination, netmask))
    return {"status": RIBStatus.OK.value, "route": route}


@app.post("/api/routes/clear")
def clear_routes():
    with _lock:
        _check(rib.clear())
    return {"status": RIBStatus.OK.value, "entries": 0}


@app.get("/api/routes/find")
def find_route(destination: str, netmask: str = WILDCARD_NETMASK):
    with _lock:
        return _check(rib.find(destination, netmask))


@app.get("/api/match/{destination}")
def match_route(destination: str):
    with _lock:
        return _check(RouteMatcher(rib).match(destination.strip()))


@app.post("/api/commit")
def commit():
    with _lock:
        if load_error:
            raise HTTPException(409, f"Routing table was not loaded ({load_error}); fix the file and roll back first")
        try:
            count = save_routing_table(rib, table_file)
        except RouteFileError as e:
            logger.error("Commit failed: %s", e)
            raise HTTPException(500, f"Commit failed: {e}")
    return {"status": RIBStatus.OK.value, "entries": count, "file": str(table_file)}


@app.post("/api/rollback")
def rollback():
    global rib, load_error
    with _lock:
        fresh = RIB()
        if table_file.exists():
            try:
                load_routing_table(fresh, table_file)
            except RouteFileError as e:
                logger.error("Rollback failed: %s", e)
                raise HTTPException(500, f"Rollback failed: {e}")
        rib.close()
        rib = fresh
        load_error = None
        return _table(note="Routing table rollbacked")


@app.get("/api/health")
def health():
    return {"status": "ok", "version": "1.0.0", "entries": len(rib), "initialized": rib.initialized}
