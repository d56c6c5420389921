"""KYC commitment scheme for identity credentials

The commitment is a SHA-256 digest over a canonical JSON encoding of the private KYC
attributes. Only the digest leaves this module; the raw attributes are never stored.
It stands in for a zero-knowledge proof and offers no hiding beyond the hash itself.
"""

import hashlib
import hmac
import json
from typing import Any, Dict

REQUIRED_KYC_FIELDS = ("name", "date_of_birth", "country", "id_number")


def commit_kyc(kyc_data: Dict[str, Any]) -> str:
    """Return the hex commitment for a set of KYC attributes"""
    canonical = json.dumps(kyc_data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def verify_commitment(kyc_data: Dict[str, Any], stored_hash: str) -> bool:
    """True when kyc_data reproduces the stored commitment"""
    return hmac.compare_digest(commit_kyc(kyc_data), stored_hash)


def identity_asset_name(created_at_ms: int) -> str:
    return f"LendADA_ID_{created_at_ms}"


def identity_token(policy_id: str, asset_name: str) -> str:
    """Fully-qualified token reference: <policy>.<asset>"""
    return f"{policy_id}.{asset_name}"


def split_identity_token(token: str) -> tuple[str, str]:
    policy_id, _, asset_name = token.partition(".")
    return policy_id, asset_name
