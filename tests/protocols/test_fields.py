# tests/protocols/test_fields.py
import pytest

from sip2_core.exceptions import MalformedResponse
from sip2_core.protocols import fields


def test_decode_splits_tag_and_value():
    result = fields.decode("64              001|AOMAIN|AAP001|AEJane Doe")
    assert ("AO", "MAIN") in result
    assert ("AA", "P001") in result
    assert ("AE", "Jane Doe") in result


def test_decode_normalizes_tag_case():
    assert fields.decode("ab12345|af hello") == [("AB", "12345"), ("AF", " hello")]


def test_decode_skips_short_elements():
    """长度不足 2 的段无法携带标签"""
    assert fields.decode("A|AB1||X") == [("AB", "1")]


def test_decode_keeps_repeated_tags_in_order():
    result = fields.decode("AFfirst|AAP1|AFsecond")
    assert [v for t, v in result if t == "AF"] == ["first", "second"]


def test_last_occurrence_wins():
    values = fields.last_values(fields.decode("AFfirst|AAP1|AFsecond|AAP2"))
    assert values["AF"] == "second"
    assert values["AA"] == "P2"


def test_round_trip_encoded_field():
    message = fields.encode_message(
        "11", ("Y", "N"), [("AO", "1"), ("AB", "12345")]
    )
    assert fields.encode_field("AB", "12345") == "AB12345"
    assert ("AB", "12345") in fields.decode(message)


def test_encode_message_layout():
    message = fields.encode_message(
        "63", ("001", "X" * 18), [("AO", "1"), ("AA", "P"), ("AD", "")]
    )
    assert message == "63001" + "X" * 18 + "AO1|AAP|AD"


def test_encode_message_without_fields():
    assert fields.encode_message("99", ("0", "030", "2.00"), []) == "990030" + "2.00"


def test_decode_fixed_flags():
    flags = fields.decode_fixed_flags("121NNY|AB1", [(2, "1"), (3, "Y"), (5, "Y")])
    assert flags == {2: True, 3: False, 5: True}


def test_decode_fixed_flags_is_case_sensitive():
    flags = fields.decode_fixed_flags("36y", [(2, "Y")])
    assert flags[2] is False


def test_decode_fixed_flags_only_reads_first_token():
    """偏移越过首段 (即使整条报文足够长) 也属于格式错误"""
    with pytest.raises(MalformedResponse, match="前缀过短"):
        fields.decode_fixed_flags("12|AB123456", [(4, "Y")])


def test_decode_fixed_flags_short_prefix():
    with pytest.raises(MalformedResponse):
        fields.decode_fixed_flags("", [(0, "Y")])
