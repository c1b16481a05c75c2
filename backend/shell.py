"""
Router shell — line-oriented front end to a RIB backed by a routing table file.

    rib-router data/routing_table.txt
    > ADD 10.0.0.0 255.255.255.0 192.168.1.1 eth0 10
    OK
    > ROUTE 10.0.0.5
    Destination	Netmask	Gateway	Iface	Metric
    10.0.0.0	255.255.255.0	192.168.1.1	eth0	10

Changes live in memory until COMMIT (or QUIT, when commit_on_quit is set).
ROLLBACK throws them away by reloading the file.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from config import ConfigError, load_settings
from matcher import RouteMatcher
from models import Route
from rib import RIB, RIBResult, WILDCARD_NETMASK
from route_file import RouteFileError, load_routing_table, save_routing_table

logger = logging.getLogger(__name__)

PROMPT = "> "
HEADER = "Destination\tNetmask\tGateway\tIface\tMetric"

USAGE = [
    "QUIT - commit and exit",
    "ADD <networkAddr> <netmask> <gateway> <iface> <metric> - add a new record in the routing table",
    "DELETE <networkAddr> [<netmask>|*] - delete a record in the routing table",
    "UPDATE <networkAddr> <netmask> <newNetmask> <newGateway> <newIface> <newMetric> - update a record in the routing table",
    "CLEAR - clear routing table",
    "SELECT <networkAddr> [<netmask>|*] - retrieve routing information for a network address",
    "ROUTE <destination> - find gateway for the provided destination",
    "DUMP - dump all the records in the routing table",
    "COMMIT - commit changes to the routing table",
    "ROLLBACK - abort changes to the routing table",
]


class CommandError(Exception):
    """Bad arguments to a shell command."""


def format_row(route: Route) -> str:
    return "\t".join([route.destination, route.netmask, route.gateway, route.iface, str(route.metric)])


def _metric(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise CommandError(f"metric is not an integer: {value!r}") from None


class RouterShell:
    def __init__(
        self,
        table_file: str | Path,
        stdout: Optional[TextIO] = None,
        commit_on_quit: bool = True,
    ):
        self.table_file = Path(table_file)
        self.stdout = stdout or sys.stdout
        self.commit_on_quit = commit_on_quit
        self.rib = RIB()
        self._handlers: dict[str, Callable[[list[str]], None]] = {
            "ADD": self.do_add,
            "DELETE": self.do_delete,
            "UPDATE": self.do_update,
            "CLEAR": self.do_clear,
            "SELECT": self.do_select,
            "ROUTE": self.do_route,
            "DUMP": self.do_dump,
            "COMMIT": self.do_commit,
            "ROLLBACK": self.do_rollback,
            "HELP": self.do_help,
        }

    def _print(self, text: str = "") -> None:
        self.stdout.write(text + "\n")

    def _report(self, result: RIBResult, show_route: bool = False) -> None:
        if not result.ok:
            self._print(f"COMMAND ERROR: {result.status.value}")
        elif show_route and result.route is not None:
            self._print(HEADER)
            self._print(format_row(result.route))
        else:
            self._print("OK")

    # --- Lifecycle ---

    def load(self) -> int:
        """Rebuild the RIB from the table file. A missing file means an empty table."""
        rib = RIB()
        if not self.table_file.exists():
            logger.warning("Routing table %s does not exist, starting empty", self.table_file)
            loaded = 0
        else:
            loaded = load_routing_table(rib, self.table_file)
        self.rib.close()
        self.rib = rib
        return loaded

    def run(self, stdin: Optional[TextIO] = None) -> None:
        stdin = stdin or sys.stdin
        while True:
            self.stdout.write(PROMPT)
            self.stdout.flush()
            line = stdin.readline()
            if not line:
                self._print()
                self.quit()
                return
            if not self.execute(line):
                return

    def execute(self, line: str) -> bool:
        """Run one command line. Returns False once QUIT has been handled."""
        tokens = line.split()
        if not tokens:
            return True
        command, args = tokens[0].upper(), tokens[1:]

        if command == "QUIT":
            self.quit()
            return False

        handler = self._handlers.get(command)
        if handler is None:
            self.do_help(args)
            return True
        try:
            handler(args)
        except CommandError as exc:
            self._print(f"COMMAND ERROR: {exc}")
        except RouteFileError as exc:
            logger.error("%s", exc)
            self._print(f"COMMAND ERROR: {exc}")
        return True

    def quit(self) -> None:
        self._print("Closing RIB...")
        if self.commit_on_quit:
            try:
                save_routing_table(self.rib, self.table_file)
            except RouteFileError as exc:
                self._print(f"Could not commit changes to routing table ({exc})")
        self.rib.close()
        self._print("RIB closed.")

    # --- Commands ---

    @staticmethod
    def _expect(args: list[str], minimum: int, maximum: Optional[int] = None) -> None:
        maximum = minimum if maximum is None else maximum
        if not minimum <= len(args) <= maximum:
            raise CommandError("wrong number of arguments")

    def do_help(self, args: list[str]) -> None:
        self._print("Commands:")
        for usage in USAGE:
            self._print(f"\t{usage}")
        self._print()

    def do_add(self, args: list[str]) -> None:
        self._expect(args, 5)
        destination, netmask, gateway, iface, metric = args
        self._report(self.rib.add(destination, netmask, gateway, iface, _metric(metric)))

    def do_delete(self, args: list[str]) -> None:
        self._expect(args, 1, 2)
        netmask = args[1] if len(args) > 1 else WILDCARD_NETMASK
        self._report(self.rib.delete(args[0], netmask))

    def do_update(self, args: list[str]) -> None:
        self._expect(args, 6)
        destination, netmask, new_netmask, new_gateway, new_iface, new_metric = args
        self._report(self.rib.update(destination, netmask, new_netmask, new_gateway, new_iface, _metric(new_metric)))

    def do_clear(self, args: list[str]) -> None:
        self._expect(args, 0)
        self._report(self.rib.clear())

    def do_select(self, args: list[str]) -> None:
        self._expect(args, 1, 2)
        netmask = args[1] if len(args) > 1 else WILDCARD_NETMASK
        self._report(self.rib.find(args[0], netmask), show_route=True)

    def do_route(self, args: list[str]) -> None:
        self._expect(args, 1)
        self._report(RouteMatcher(self.rib).match(args[0]), show_route=True)

    def do_dump(self, args: list[str]) -> None:
        self._expect(args, 0)
        self._print(HEADER)
        for route in self.rib.routes:
            self._print(format_row(route))

    def do_commit(self, args: list[str]) -> None:
        self._expect(args, 0)
        count = save_routing_table(self.rib, self.table_file)
        self._print(f"OK ({count} routes committed)")

    def do_rollback(self, args: list[str]) -> None:
        self._expect(args, 0)
        self.load()
        self._print("Routing table rollbacked!")


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="rib-router", description="Interactive routing table shell")
    parser.add_argument("routing_table_file", nargs="?", help="routing table file (default: from config)")
    parser.add_argument("--config", help="path to rib.yml")
    parser.add_argument("--log-level", help="override the configured log level")
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(level=(args.log_level or settings.log_level).upper())

    table_file = Path(args.routing_table_file) if args.routing_table_file else settings.routing_table_file
    shell = RouterShell(table_file, commit_on_quit=settings.commit_on_quit)
    try:
        shell.load()
    except RouteFileError as exc:
        print(f"Could not parse routing table! {exc}", file=sys.stderr)
        return 1

    shell.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
