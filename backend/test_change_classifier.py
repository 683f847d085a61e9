"""
Tests for per-hostname change classification
"""

from dyndnsd.schemas.dns import ChangeOutcome
from dyndnsd.services.change_classifier import changed, classify_change, process_changes


def test_new_binding_is_good():
    hosts = {}
    assert classify_change("home.example.com", ["203.0.113.5"], hosts) == ChangeOutcome.GOOD
    assert hosts == {"home.example.com": ["203.0.113.5"]}


def test_same_binding_is_nochg():
    hosts = {"home.example.com": ["203.0.113.5"]}
    assert classify_change("home.example.com", ["203.0.113.5"], hosts) == ChangeOutcome.NOCHG
    assert hosts == {"home.example.com": ["203.0.113.5"]}


def test_order_matters():
    """Test that the same addresses in another order are a change"""
    hosts = {"home.example.com": ["203.0.113.5", "2001:db8::1"]}
    assert changed("home.example.com", ["2001:db8::1", "203.0.113.5"], hosts)
    assert classify_change("home.example.com", ["2001:db8::1", "203.0.113.5"], hosts) == ChangeOutcome.GOOD
    assert hosts["home.example.com"] == ["2001:db8::1", "203.0.113.5"]


def test_withdrawal():
    hosts = {"home.example.com": ["203.0.113.5"]}
    assert classify_change("home.example.com", [], hosts) == ChangeOutcome.GOOD
    assert hosts == {}
    # Nothing left to withdraw
    assert classify_change("home.example.com", [], hosts) == ChangeOutcome.NOCHG
    assert hosts == {}


def test_stored_list_is_a_copy():
    myips = ["203.0.113.5"]
    hosts = {}
    classify_change("home.example.com", myips, hosts)
    myips.append("2001:db8::1")
    assert hosts["home.example.com"] == ["203.0.113.5"]


def test_process_changes_in_request_order():
    hosts = {"work.example.com": ["203.0.113.5"]}
    changes = process_changes(["home.example.com", "work.example.com"], ["203.0.113.5"], hosts)
    assert changes == [ChangeOutcome.GOOD, ChangeOutcome.NOCHG]


def test_duplicate_hostnames_see_first_occurrence():
    """Test that a repeated hostname is classified against the already updated table"""
    hosts = {}
    changes = process_changes(["home.example.com", "home.example.com"], ["203.0.113.5"], hosts)
    assert changes == [ChangeOutcome.GOOD, ChangeOutcome.NOCHG]
    assert hosts == {"home.example.com": ["203.0.113.5"]}
