import base64
import json

import pytest

from services import credential_decoder
from use_cases.errors import DecodeError
from use_cases.session_models import IdentityClaim, Session


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def make_token(payload) -> str:
    header = _b64(json.dumps({"alg": "RS256", "typ": "JWT"}).encode("utf-8"))
    body = _b64(json.dumps(payload).encode("utf-8"))
    return f"{header}.{body}.signature"


VALID_CLAIMS = {"sub": "u1", "name": "A", "email": "a@x.com", "picture": "p"}


def test_decode_valid_token():
    claim = credential_decoder.decode(make_token(VALID_CLAIMS))
    assert claim == IdentityClaim(subject_id="u1", display_name="A", email="a@x.com", avatar_url="p")


def test_decoded_claim_becomes_expected_session():
    session = Session.from_claim(credential_decoder.decode(make_token(VALID_CLAIMS)))
    assert session == Session(id="u1", name="A", email="a@x.com", avatar_url="p")


def test_decode_ignores_header_and_signature_content():
    body = _b64(json.dumps(VALID_CLAIMS).encode("utf-8"))
    claim = credential_decoder.decode(f"not-a-header.{body}.")
    assert claim.subject_id == "u1"


def test_decode_restores_missing_padding():
    claims = dict(VALID_CLAIMS, name="Ab")
    claim = credential_decoder.decode(make_token(claims))
    assert claim.display_name == "Ab"


def test_decode_handles_unicode_names():
    claim = credential_decoder.decode(make_token(dict(VALID_CLAIMS, name="Zoë Ångström")))
    assert claim.display_name == "Zoë Ångström"


@pytest.mark.parametrize(
    "token",
    [
        "",
        "onlyonesegment",
        "two.segments",
        "a.b.c.d",
        "header..sig",
    ],
)
def test_decode_rejects_bad_structure(token):
    with pytest.raises(DecodeError):
        credential_decoder.decode(token)


def test_decode_rejects_invalid_base64():
    with pytest.raises(DecodeError):
        credential_decoder.decode("h.@@@é@@@.s")


def test_decode_rejects_non_json_payload():
    with pytest.raises(DecodeError):
        credential_decoder.decode(f"h.{_b64(b'not json at all')}.s")


def test_decode_rejects_non_utf8_payload():
    with pytest.raises(DecodeError):
        credential_decoder.decode(f"h.{_b64(bytes([0xff, 0xfe, 0xfd]))}.s")


@pytest.mark.parametrize("payload", [[1, 2, 3], "just a string", 42, None])
def test_decode_rejects_non_object_payload(payload):
    with pytest.raises(DecodeError):
        credential_decoder.decode(make_token(payload))


@pytest.mark.parametrize("missing", ["sub", "name", "email", "picture"])
def test_decode_rejects_missing_claim(missing):
    claims = {k: v for k, v in VALID_CLAIMS.items() if k != missing}
    with pytest.raises(DecodeError):
        credential_decoder.decode(make_token(claims))


def test_decode_rejects_non_string_claim():
    with pytest.raises(DecodeError):
        credential_decoder.decode(make_token(dict(VALID_CLAIMS, sub=12345)))


def test_decode_rejects_non_string_token():
    with pytest.raises(DecodeError):
        credential_decoder.decode(None)
