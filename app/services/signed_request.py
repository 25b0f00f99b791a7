import base64, binascii, hashlib, hmac, json

from app.core.errors import InvalidSignature, MalformedInput

def b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

def b64url_decode(segment: str) -> bytes:
    s = segment.rstrip("=").replace("-", "+").replace("_", "/")
    s += "=" * (-len(s) % 4)
    return base64.b64decode(s, validate=True)

def _key(secret: str | bytes) -> bytes:
    return secret.encode("utf-8") if isinstance(secret, str) else secret

def _digest(payload_segment: str, secret: str | bytes) -> bytes:
    # Facebook signs the encoded payload segment, not the decoded JSON
    return hmac.new(_key(secret), payload_segment.encode("ascii"), hashlib.sha256).digest()

def sign_request(payload: dict, secret: str | bytes) -> str:
    payload_segment = b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    return f"{b64url_encode(_digest(payload_segment, secret))}.{payload_segment}"

def verify_signed_request(signed_request: str, secret: str | bytes) -> dict:
    """Verify a Facebook ``signed_request`` and return its decoded payload.

    Raises ``MalformedInput`` when the token is not two non-empty base64url
    segments joined by a single dot or the payload is not a JSON object, and
    ``InvalidSignature`` when the signature does not match. Every signature
    failure, whether a bad length, bad content or an undecodable segment, is
    reported the same way.
    """
    parts = signed_request.split(".") if signed_request else []
    if len(parts) != 2 or not all(parts):
        raise MalformedInput("Malformed signed_request")
    encoded_sig, payload_segment = parts

    try:
        payload_segment.encode("ascii")
    except UnicodeEncodeError:
        raise MalformedInput("Malformed signed_request")

    try:
        sig = b64url_decode(encoded_sig)
    except (binascii.Error, ValueError):
        sig = b""

    expected = _digest(payload_segment, secret)
    if not hmac.compare_digest(sig, expected):
        raise InvalidSignature("Invalid signature")

    try:
        data = json.loads(b64url_decode(payload_segment))
    except (binascii.Error, ValueError):
        raise MalformedInput("Malformed signed_request payload")
    if not isinstance(data, dict):
        raise MalformedInput("Malformed signed_request payload")
    return data
