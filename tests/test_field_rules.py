import pathlib
import re
import sys

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SCRIPTS_DIR = PROJECT_ROOT / "scripts"

if str(SCRIPTS_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPTS_DIR))

import etherhosts  # type: ignore  # noqa: E402

FieldStatus = etherhosts.FieldStatus


def test_clean_ipaddr_accepts_strict_dotted_quads():
    for value in ("192.168.1.1", "0.0.0.0", "255.255.255.255", "10.20.199.249"):
        result = etherhosts.clean_ipaddr(value)
        assert result.status is FieldStatus.VALID
        assert result.value == value


def test_clean_ipaddr_trims_whitespace():
    result = etherhosts.clean_ipaddr("  10.0.0.1\t")
    assert result.ok
    assert result.value == "10.0.0.1"


def test_clean_ipaddr_rejects_malformed_addresses():
    for value in ("256.1.1.1", "1.2.3", "01.2.3.4", "1.2.3.4.5", "a.b.c.d", "1.2.3.4\n5"):
        result = etherhosts.clean_ipaddr(value)
        assert result.status is FieldStatus.INVALID
        assert result.reason == "ipaddr failed regex check"


def test_clean_ipaddr_treats_blank_as_error():
    for value in ("", "   "):
        result = etherhosts.clean_ipaddr(value)
        assert result.status is FieldStatus.INVALID
        assert result.reason


def test_clean_macaddr_normalises_separators_and_case():
    samples = [
        "AA-BB-CC-DD-EE-FF",
        " aa:bb:cc:dd:ee:ff ",
        "Aa:Bb-cC:dd:EE:ff",
    ]

    for value in samples:
        result = etherhosts.clean_macaddr(value)
        assert result.status is FieldStatus.VALID
        assert result.value == "aa:bb:cc:dd:ee:ff"


def test_clean_macaddr_blank_is_absent():
    for value in ("", "  ", "\t"):
        result = etherhosts.clean_macaddr(value)
        assert result.status is FieldStatus.ABSENT
        assert result.reason == ""


def test_clean_macaddr_rejects_malformed_addresses():
    for value in ("aa:bb:cc:dd:ee", "gg:bb:cc:dd:ee:ff", "aabb.ccdd.eeff", "aa:bb:cc:dd:ee:ff:00"):
        result = etherhosts.clean_macaddr(value)
        assert result.status is FieldStatus.INVALID
        assert result.reason == "macaddr failed regex check"


def test_clean_hostname_keeps_case_and_inner_spaces():
    assert etherhosts.clean_hostname("host-1.example").value == "host-1.example"
    assert etherhosts.clean_hostname("  Web01 web01.lan ").value == "Web01 web01.lan"


def test_clean_hostname_blank_is_absent():
    assert etherhosts.clean_hostname("").status is FieldStatus.ABSENT
    assert etherhosts.clean_hostname("   ").status is FieldStatus.ABSENT


def test_clean_hostname_rejects_unexpected_characters():
    for value in ("host_1", "host/1", "héte"):
        result = etherhosts.clean_hostname(value)
        assert result.status is FieldStatus.INVALID
        assert result.reason == "hostname failed regex check"


def test_field_rule_without_absent_support_reports_blank_cells():
    rule = etherhosts.FieldRule("serial", re.compile(r"[0-9]+"), allow_absent=False)

    assert rule.clean("").status is FieldStatus.INVALID
    assert rule.clean(" 42 ").value == "42"
