"""
Request signing for the licensing API.

The service authenticates a request by recomputing an HMAC over a canonical
string built from five newline-separated fields:

    METHOD
    Content-MD5 (hex, empty for GET or an empty body)
    Content-Type (``application/json`` for POST/PUT, else empty)
    Date (HTTP-date)
    resource path (``/v1/{scope}s/{id}/...``, no query string)

Field order and the newline positions are fixed even when a field is empty.
"""
import base64
import hashlib
import hmac
import json
from email.utils import formatdate
from typing import Any, Dict, Optional

JSON_CONTENT_TYPE = "application/json"

def http_date(timestamp: Optional[float] = None) -> str:
    return formatdate(timestamp, usegmt=True)

def encode_body(params: Dict[str, Any]) -> str:
    """Compact JSON, used for both the request body and its MD5."""
    return json.dumps(params, separators=(",", ":"))

def get_content_type(method: str) -> str:
    return JSON_CONTENT_TYPE if method.upper() in ("POST", "PUT") else ""

def get_content_md5(method: str, params: Optional[Dict[str, Any]]) -> str:
    if not params or method.upper() == "GET":
        return ""
    return hashlib.md5(encode_body(params).encode("utf-8")).hexdigest()

def get_auth_scheme(public_key: str, secret_key: str) -> str:
    # Identical keys mean public-key hash mode.
    return "FS" if secret_key != public_key else "FSP"

def canonical_string(method: str, content_md5: str, content_type: str, date: str, resource_path: str) -> str:
    return "\n".join([method.upper(), content_md5, content_type, date, resource_path])

def sign(string_to_sign: str, secret_key: str) -> str:
    digest = hmac.new(secret_key.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()
    return base64.urlsafe_b64encode(digest.encode("ascii")).decode("ascii").rstrip("=")

def get_signed_headers(
    method: str,
    resource_path: str,
    params: Optional[Dict[str, Any]],
    entity_id: str,
    public_key: str,
    secret_key: str,
    timestamp: Optional[float] = None,
) -> Dict[str, str]:
    """
    Build the ``Date``, ``Authorization`` and optional ``Content-MD5`` headers.

    Pure function of its inputs: the same timestamp always yields the same
    headers.
    """
    method = method.upper()
    date = http_date(timestamp)
    content_md5 = get_content_md5(method, params)

    string_to_sign = canonical_string(method, content_md5, get_content_type(method), date, resource_path)
    signature = sign(string_to_sign, secret_key)

    headers = {
        "Date": date,
        "Authorization": f"{get_auth_scheme(public_key, secret_key)} {entity_id}:{public_key}:{signature}",
    }

    if content_md5:
        headers["Content-MD5"] = content_md5

    return headers
