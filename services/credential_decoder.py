import base64
import binascii
import json
from typing import Any, Dict

from use_cases.errors import DecodeError
from use_cases.session_models import IdentityClaim

# The signature is NOT verified here: the Google Identity Services script that
# hands us the credential is the trust boundary.
REQUIRED_CLAIMS = ("sub", "name", "email", "picture")


def _decode_b64(data: str) -> bytes:
    pad = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode((data + pad).encode("ascii"))


def _payload(raw_token: str) -> Dict[str, Any]:
    if not isinstance(raw_token, str):
        raise DecodeError("Credential is not a string")
    segments = raw_token.split(".")
    if len(segments) != 3 or not segments[1]:
        raise DecodeError("Credential must have three dot-separated segments")

    try:
        raw = _decode_b64(segments[1])
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Credential payload is not valid base64url: {e}") from e

    try:
        payload = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"Credential payload is not JSON: {e}") from e

    if not isinstance(payload, dict):
        raise DecodeError("Credential payload is not a claim set")
    return payload


def decode(raw_token: str) -> IdentityClaim:
    """
    Turns a federated bearer token into an IdentityClaim.
    Raises DecodeError for any malformed input. Pure, no side effects.
    """
    payload = _payload(raw_token)
    for key in REQUIRED_CLAIMS:
        value = payload.get(key)
        if not isinstance(value, str) or not value:
            raise DecodeError(f"Credential claim '{key}' is missing")

    return IdentityClaim(
        subject_id=payload["sub"],
        display_name=payload["name"],
        email=payload["email"],
        avatar_url=payload["picture"],
    )
