"""Tests for the RIB store."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from rib import RIB, RIBStatus


@pytest.fixture
def rib():
    table = RIB()
    table.add("10.0.0.0", "255.255.255.0", "192.168.1.1", "eth0", 10)
    table.add("10.0.0.0", "255.255.0.0", "192.168.1.2", "eth1", 20)
    table.add("172.16.0.0", "255.240.0.0", "192.168.1.3", "eth2", 30)
    return table


class TestAdd:

    def test_add_then_find(self):
        table = RIB()
        result = table.add("010.008.000.000", "255.255.000.000", "192.168.001.001", "tun0", 5)
        assert result.ok
        found = table.find("10.8.0.0", "255.255.0.0")
        assert found.ok
        route = found.route
        assert (route.destination, route.netmask, route.gateway) == ("10.8.0.0", "255.255.0.0", "192.168.1.1")
        assert route.iface == "tun0"
        assert route.metric == 5
        assert route.ip_version == 4

    def test_count_grows(self, rib):
        assert len(rib) == 3
        rib.add("8.8.8.0", "255.255.255.0", "192.168.1.1", "eth0", 1)
        assert rib.entries == 4

    def test_appends_in_order(self, rib):
        rib.add("8.8.8.0", "255.255.255.0", "192.168.1.1", "eth0", 1)
        assert [r.destination for r in rib.routes] == ["10.0.0.0", "10.0.0.0", "172.16.0.0", "8.8.8.0"]

    def test_duplicate(self, rib):
        result = rib.add("10.0.0.0", "255.255.255.0", "192.168.9.9", "eth9", 99)
        assert result.status is RIBStatus.DUPLICATE_RECORD
        assert len(rib) == 3

    def test_duplicate_non_canonical(self, rib):
        result = rib.add("010.000.000.000", "255.255.255.000", "192.168.9.9", "eth9", 99)
        assert result.status is RIBStatus.DUPLICATE_RECORD

    def test_same_destination_other_mask_allowed(self, rib):
        assert rib.add("10.0.0.0", "255.0.0.0", "192.168.1.1", "eth0", 1).ok

    @pytest.mark.parametrize("dest,mask,gw", [
        ("10.0.0", "255.0.0.0", "192.168.1.1"),
        ("10.0.0.0", "bogus", "192.168.1.1"),
        ("10.0.0.0", "255.0.0.0", "gateway.local"),
        ("", "255.0.0.0", "192.168.1.1"),
        ("10.0.0.0", "255.0.0.0", "2001:db8::1"),
    ])
    def test_invalid_address(self, rib, dest, mask, gw):
        result = rib.add(dest, mask, gw, "eth0", 1)
        assert result.status is RIBStatus.INVALID_ADDRESS
        assert len(rib) == 3

    def test_ipv6_entry(self):
        table = RIB()
        assert table.add("2001:db8::", "64", "2001:db8::1", "eth0", 1).ok
        assert table.add("2001:db9::", "ffff:ffff::", "fe80::1", "eth0", 1).ok
        route = table.find("2001:0db8::", "64").route
        assert route.ip_version == 6

    def test_ipv6_with_ipv4_mask_rejected(self):
        table = RIB()
        result = table.add("2001:db8::", "255.255.0.0", "2001:db8::1", "eth0", 1)
        assert result.status is RIBStatus.INVALID_ADDRESS

    @pytest.mark.parametrize("iface", ["", "my eth", " eth0", "eth0\t", "eth\n0"])
    def test_bad_iface(self, rib, iface):
        result = rib.add("8.8.8.0", "255.255.255.0", "192.168.1.1", iface, 1)
        assert result.status is RIBStatus.INVALID_ADDRESS
        assert len(rib) == 3


class TestDelete:

    def test_delete_exact(self, rib):
        assert rib.delete("10.0.0.0", "255.255.0.0").ok
        assert len(rib) == 2
        assert rib.find("10.0.0.0", "255.255.0.0").status is RIBStatus.NO_MATCH
        assert rib.find("10.0.0.0", "255.255.255.0").ok

    def test_delete_keeps_order(self, rib):
        rib.add("8.8.8.0", "255.255.255.0", "192.168.1.1", "eth0", 1)
        rib.delete("10.0.0.0", "255.255.0.0")
        assert [r.gateway for r in rib.routes] == ["192.168.1.1", "192.168.1.3", "192.168.1.1"]
        assert [r.destination for r in rib.routes] == ["10.0.0.0", "172.16.0.0", "8.8.8.0"]

    def test_wildcard_removes_first_only(self, rib):
        result = rib.delete("10.0.0.0", "*")
        assert result.ok
        assert result.route.netmask == "255.255.255.0"
        assert len(rib) == 2
        assert rib.delete("10.0.0.0", "*").ok
        assert rib.delete("10.0.0.0", "*").status is RIBStatus.NOT_EXISTS

    def test_wildcard_any_mask(self, rib):
        assert rib.delete("172.16.0.0", "*").ok

    def test_empty_table(self):
        table = RIB()
        assert table.delete("10.0.0.0", "*").status is RIBStatus.NOT_EXISTS
        assert len(table) == 0

    def test_no_match(self, rib):
        assert rib.delete("10.0.0.0", "255.0.0.0").status is RIBStatus.NOT_EXISTS
        assert len(rib) == 3


class TestUpdate:

    def test_update_fields(self, rib):
        result = rib.update("10.0.0.0", "255.255.0.0", "255.254.000.000", "192.168.002.002", "eth5", 55)
        assert result.ok
        route = rib.routes[1]
        assert route.destination == "10.0.0.0"
        assert route.netmask == "255.254.0.0"
        assert route.gateway == "192.168.2.2"
        assert route.iface == "eth5"
        assert route.metric == 55

    def test_update_in_place(self, rib):
        view = rib.find("172.16.0.0", "255.240.0.0").route
        rib.update("172.16.0.0", "255.240.0.0", "255.240.0.0", "192.168.7.7", "eth7", 7)
        assert view.gateway == "192.168.7.7"

    def test_version_change_rejected(self, rib):
        before = rib.routes[0]
        snapshot = (before.netmask, before.gateway, before.iface, before.metric)
        result = rib.update("10.0.0.0", "255.255.255.0", "255.255.255.0", "2001:db8::1", "eth0", 1)
        assert result.status is RIBStatus.INVALID_ADDRESS
        after = rib.routes[0]
        assert (after.netmask, after.gateway, after.iface, after.metric) == snapshot

    def test_invalid_literals(self, rib):
        assert rib.update("10.0.0.0", "255.255.255.0", "nope", "192.168.1.1", "eth0", 1).status is RIBStatus.INVALID_ADDRESS
        assert rib.update("10.0.0.0", "255.255.255.0", "255.0.0.0", "nope", "eth0", 1).status is RIBStatus.INVALID_ADDRESS

    @pytest.mark.parametrize("iface", ["", "my eth"])
    def test_bad_iface(self, rib, iface):
        result = rib.update("10.0.0.0", "255.255.255.0", "255.255.255.0", "192.168.1.9", iface, 1)
        assert result.status is RIBStatus.INVALID_ADDRESS
        assert rib.routes[0].iface == "eth0"
        assert rib.routes[0].gateway == "192.168.1.1"

    def test_not_exists(self, rib):
        result = rib.update("10.9.0.0", "255.255.0.0", "255.255.0.0", "192.168.1.1", "eth0", 1)
        assert result.status is RIBStatus.NOT_EXISTS

    def test_no_wildcard(self, rib):
        result = rib.update("10.0.0.0", "*", "255.255.0.0", "192.168.1.1", "eth0", 1)
        assert result.status is RIBStatus.NOT_EXISTS

    def test_netmask_collision(self, rib):
        result = rib.update("10.0.0.0", "255.255.255.0", "255.255.0.0", "192.168.1.1", "eth0", 1)
        assert result.status is RIBStatus.DUPLICATE_RECORD
        assert rib.routes[0].netmask == "255.255.255.0"


class TestClear:

    def test_clear(self, rib):
        assert rib.clear().ok
        assert len(rib) == 0
        assert rib.routes == ()

    def test_idempotent(self):
        table = RIB()
        assert table.clear().ok
        assert table.clear().ok


class TestFind:

    def test_wildcard(self, rib):
        assert rib.find("172.16.0.0", "*").route.gateway == "192.168.1.3"
        assert rib.find("172.16.0.0").ok

    def test_no_match(self, rib):
        assert rib.find("172.16.0.0", "255.255.0.0").status is RIBStatus.NO_MATCH
        assert RIB().find("10.0.0.0", "*").status is RIBStatus.NO_MATCH


class TestClosed:

    def test_operations_after_close(self, rib):
        assert rib.close().ok
        assert not rib.initialized
        assert len(rib) == 0
        assert rib.add("8.8.8.0", "255.255.255.0", "192.168.1.1", "eth0", 1).status is RIBStatus.UNINITIALIZED
        assert rib.delete("10.0.0.0", "*").status is RIBStatus.UNINITIALIZED
        assert rib.update("10.0.0.0", "255.255.255.0", "255.255.255.0", "192.168.1.1", "eth0", 1).status is RIBStatus.UNINITIALIZED
        assert rib.clear().status is RIBStatus.UNINITIALIZED
        assert rib.find("10.0.0.0").status is RIBStatus.UNINITIALIZED
        assert rib.close().status is RIBStatus.UNINITIALIZED


