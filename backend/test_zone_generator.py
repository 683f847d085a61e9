"""
Tests for BIND zone rendering and the command_with_bind_zone propagator
"""

import dns.zone
import pytest

from dyndnsd.core.config import UpdaterParams
from dyndnsd.core.exceptions import PropagationException
from dyndnsd.services.bind_service import CommandWithBindZone, NullPropagator, create_propagator
from dyndnsd.services.zone_generator import BindZoneGenerator, native_address

from conftest import make_settings

HOSTS = {
    "home.example.com": ["203.0.113.5", "2001:db8::1"],
    "work.example.com": ["::ffff:198.51.100.7"],
}


def make_params(tmp_path, **overrides) -> UpdaterParams:
    values = {
        "zone_file": str(tmp_path / "zones" / "example.com.zone"),
        "command": "true",
        "ttl": "5m",
        "dns": "ns1.example.com.",
        "email_addr": "admin.example.com.",
    }
    values.update(overrides)
    return UpdaterParams(**values)


def test_native_address():
    assert str(native_address("::ffff:198.51.100.7")) == "198.51.100.7"
    assert str(native_address("2001:db8::1")) == "2001:db8::1"
    assert native_address("203.0.113.5").version == 4


def test_native_address_rejects_scoped_ipv6():
    with pytest.raises(ValueError):
        native_address("fe80::1%eth0")


def test_generate_zone(tmp_path, context):
    """Test the rendered zone text and that dnspython accepts it"""
    generator = BindZoneGenerator("example.com", make_params(tmp_path), context)
    content = generator.generate(5, HOSTS)

    lines = content.splitlines()
    assert lines[0] == "$TTL 5m"
    assert lines[1] == "$ORIGIN example.com."
    assert "@ IN SOA ns1.example.com. admin.example.com. ( 5 3h 5m 1w 1h )" in lines
    assert "@ IN NS ns1.example.com." in lines
    assert "home IN A 203.0.113.5" in lines
    assert "home IN AAAA 2001:db8::1" in lines
    assert "work IN A 198.51.100.7" in lines
    assert content.endswith("\n")

    zone = dns.zone.from_text(content, origin="example.com.", relativize=True)
    soa = zone.find_rdataset("@", "SOA")[0]
    assert soa.serial == 5
    assert soa.refresh == 3 * 3600
    assert soa.minimum == 3600
    assert {rdata.address for rdata in zone.find_rdataset("home", "A")} == {"203.0.113.5"}


def test_generate_additional_content(tmp_path, context):
    params = make_params(tmp_path, additional_zone_content="www IN CNAME home")
    content = BindZoneGenerator("example.com", params, context).generate(1, {})
    assert content.rstrip().endswith("www IN CNAME home")


def test_invalid_addresses_are_skipped(tmp_path, context, caplog):
    generator = BindZoneGenerator("example.com", make_params(tmp_path), context)
    records = generator.records({"home.example.com": ["testclient", "203.0.113.5"]})
    assert [(r.name, r.rtype, r.address) for r in records] == [("home", "A", "203.0.113.5")]
    assert "Skipping invalid address 'testclient'" in caplog.text


def test_propagate_writes_zone_and_runs_command(tmp_path, context):
    params = make_params(tmp_path)
    updater = CommandWithBindZone("example.com", params, context)
    updater.update({"serial": 3, "hosts": HOSTS})

    written = (tmp_path / "zones" / "example.com.zone").read_text()
    assert "( 3 3h 5m 1w 1h )" in written
    assert "home IN AAAA 2001:db8::1" in written
    assert not list((tmp_path / "zones").glob(".*.tmp"))


def test_stored_scoped_address_is_skipped(tmp_path, context, caplog):
    """Test that a scoped address already in the host table does not invalidate the zone"""
    hosts = {"home.example.com": ["fe80::1%eth0"], "bob.example.com": ["203.0.113.9"]}
    CommandWithBindZone("example.com", make_params(tmp_path), context).update({"serial": 4, "hosts": hosts})

    written = (tmp_path / "zones" / "example.com.zone").read_text()
    assert "bob IN A 203.0.113.9" in written
    assert "fe80" not in written
    assert "Skipping invalid address 'fe80::1%eth0'" in caplog.text


def test_propagate_command_failure(tmp_path, context):
    updater = CommandWithBindZone("example.com", make_params(tmp_path, command="false"), context)
    with pytest.raises(PropagationException) as exc_info:
        updater.update({"serial": 3, "hosts": HOSTS})
    assert exc_info.value.details["returncode"] == 1
    # the zone file is written before the command runs
    assert (tmp_path / "zones" / "example.com.zone").exists()


def test_propagate_missing_command(tmp_path, context):
    params = make_params(tmp_path, command=f"{tmp_path}/no-such-reload --zone example.com")
    updater = CommandWithBindZone("example.com", params, context)
    with pytest.raises(PropagationException) as exc_info:
        updater.update({"serial": 3, "hosts": HOSTS})
    assert exc_info.value.details["returncode"] == 127


def test_invalid_zone_is_not_written(tmp_path, context):
    """Test that a zone rejected by dnspython never replaces the zone file"""
    params = make_params(tmp_path, additional_zone_content="www IN A not-an-address")
    updater = CommandWithBindZone("example.com", params, context)
    with pytest.raises(PropagationException):
        updater.update({"serial": 3, "hosts": HOSTS})
    assert not (tmp_path / "zones" / "example.com.zone").exists()


def test_zone_check_can_be_disabled(tmp_path, context):
    params = make_params(tmp_path, additional_zone_content="www IN A not-an-address", check_zone=False)
    CommandWithBindZone("example.com", params, context).update({"serial": 3, "hosts": {}})
    assert "not-an-address" in (tmp_path / "zones" / "example.com.zone").read_text()


def test_empty_command_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        make_params(tmp_path, command="  ")


def test_create_propagator(tmp_path, context):
    assert isinstance(create_propagator(make_settings(tmp_path), context), NullPropagator)

    settings = make_settings(tmp_path, UPDATER={"name": "command_with_bind_zone", "params": make_params(tmp_path).model_dump()})
    assert isinstance(create_propagator(settings, context), CommandWithBindZone)
