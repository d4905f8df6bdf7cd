import pytest

from src.analysis_gateway.errors import InvalidPayload
from src.analysis_gateway.input_spec import parse_request
from src.analysis_gateway.types import Category


def test_parse_minimal():
    req = parse_request({"type": "freeform", "query": "7203", "prompt": "sys"})
    assert req.category is Category.FREEFORM
    assert req.query == "7203"
    assert req.custom_instruction == "sys"


def test_parse_json_string_and_bytes():
    assert parse_request('{"type":"market_data"}').category is Category.MARKET_DATA
    assert parse_request(b'{"type":"yutai_list"}').category is Category.YUTAI_LIST


def test_empty_body_is_freeform():
    for body in (None, "", "   ", {}):
        req = parse_request(body)
        assert req.category is Category.FREEFORM
        assert req.query is None


def test_unknown_type_falls_back_to_freeform():
    assert parse_request({"type": "crypto"}).category is Category.FREEFORM
    assert parse_request({"type": 5}).category is Category.FREEFORM
    assert parse_request({"type": " Ranking "}).category is Category.RANKING


@pytest.mark.parametrize("body", ["{not json", "[1, 2]", '"text"', b"\xff\xfe", 42])
def test_malformed_body_is_invalid_payload(body):
    with pytest.raises(InvalidPayload) as ei:
        parse_request(body)
    assert ei.value.http_status == 400


def test_non_string_fields_are_ignored():
    req = parse_request({"type": "freeform", "query": ["a"], "prompt": {"x": 1}})
    assert req.query is None
    assert req.custom_instruction is None
