# tests/protocols/test_commands.py
import pytest

from sip2_core.exceptions import InvalidOperationParameter
from sip2_core.protocols import commands, fields

TS = "20240131    120000"
BLANK = " " * 18
COMMON = {"timestamp": TS, "institution_id": "MAIN", "password": "pw"}


def test_build_login():
    assert commands.build_login("user", "pass", "LOC1") == "9300CNuser|COpass|CPLOC1"


def test_build_login_without_extra_number():
    assert commands.build_login("user", "pass") == "9300CNuser|COpass|CP"


def test_build_handshake():
    assert commands.build_handshake("2.00") == "9900302.00"


def test_build_patron_status():
    msg = commands.build_patron_status("P001", **COMMON)

    assert msg.startswith("63001" + TS + " " * 10 + "AOMAIN|")
    assert msg.endswith("|AAP001|ACpw|AD|BP|BQ")


def test_build_checkout():
    msg = commands.build_checkout("P001", "30000012345", **COMMON)

    assert msg.startswith("11YN")
    assert msg[4:22] == TS
    assert msg[22:40] == BLANK
    assert msg[40:] == "AOMAIN|AAP001|AB30000012345|ACpw"


def test_build_checkin():
    msg = commands.build_checkin("30000012345", location="LOC1", **COMMON)
    assert msg == "09Y" + TS + TS + "APLOC1|AOMAIN|AB30000012345|ACpw"


def test_build_checkin_default_location():
    msg = commands.build_checkin("1", location="", **COMMON)
    assert ("AP", "0") in fields.decode(msg)


@pytest.mark.parametrize(
    "action, sign", [("add", "+"), ("REMOVE", "-"), (1, "+"), (-1, "-"), ("+", "+")]
)
def test_build_hold(action, sign):
    msg = commands.build_hold("P001", "B1", action, **COMMON)
    assert msg == "15" + sign + TS + "AOMAIN|AAP001|AB1|ACpw"


@pytest.mark.parametrize("action", ["toggle", 0, 2, True, None])
def test_hold_invalid_action(action):
    with pytest.raises(InvalidOperationParameter):
        commands.build_hold("P001", "B1", action, **COMMON)


def test_build_renew():
    msg = commands.build_renew("P001", "B1", **COMMON)
    assert msg == "29YY" + TS + TS + "AOMAIN|AAP001|AB1|ACpw"


def test_build_renew_all():
    assert commands.build_renew_all("P001", **COMMON) == "65" + TS + "AOMAIN|AAP001|ACpw"


def test_build_end_session():
    assert commands.build_end_session("P001", **COMMON) == "35" + TS + "AOMAIN|AAP001|ACpw"


def test_builders_embed_timestamp_once_per_call():
    """时间戳由调用方提供，构建器本身无副作用"""
    a = commands.build_renew_all("P001", **COMMON)
    b = commands.build_renew_all("P001", **COMMON)
    assert a == b
