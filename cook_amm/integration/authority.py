"""
Caller authority checks.

Every entry point names a `signer`. The host ledger says whether that key signed
the invocation (`is_signer`). With `require_signatures` on, the request must also
carry a BLS signature (py_ecc G2Basic) by `signer` over

    sha256(domain_sep("cook_amm_request:<chain_id>") || canonical_json(request))
"""

from __future__ import annotations

from dataclasses import dataclass
import hashlib
import re
from typing import Any, Mapping, Optional, Tuple

from py_ecc.bls import G2Basic

from ..config import EngineConfig
from ..core.errors import ValidationRejection
from ..state.canonical import canonical_json_bytes, domain_sep_bytes

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]*$")

BLS_PUBKEY_BYTES = 48
BLS_SIGNATURE_BYTES = 96


@dataclass(frozen=True)
class Authority:
    signer: str
    is_signer: bool = True
    signature: Optional[str] = None


def _hex_to_bytes_allow_0x(value: str, *, name: str, expected_nbytes: int) -> bytes:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a hex string")
    raw = value[2:] if value.startswith(("0x", "0X")) else value
    if not _HEX_CHARS_RE.match(raw) or len(raw) != expected_nbytes * 2:
        raise ValueError(f"{name} must be {expected_nbytes} bytes of hex")
    return bytes.fromhex(raw)


def request_message(kind: str, fields: Mapping[str, Any], *, chain_id: str) -> bytes:
    """Digest a signature over a `kind` request with `fields` must cover."""
    payload = dict(fields)
    payload["kind"] = kind
    msg = domain_sep_bytes(f"cook_amm_request:{chain_id}", version=1) + canonical_json_bytes(payload)
    return hashlib.sha256(msg).digest()


def bls_pubkey_hex(privkey: int) -> str:
    if not isinstance(privkey, int) or isinstance(privkey, bool) or privkey <= 0:
        raise ValueError("privkey must be a positive int")
    return "0x" + G2Basic.SkToPk(privkey).hex()


def sign_request(kind: str, fields: Mapping[str, Any], *, privkey: int, chain_id: str) -> str:
    msg_hash = request_message(kind, fields, chain_id=chain_id)
    return "0x" + G2Basic.Sign(privkey, msg_hash).hex()


def verify_request_signature(
    kind: str,
    fields: Mapping[str, Any],
    *,
    pubkey_hex: str,
    signature_hex: str,
    chain_id: str,
) -> Tuple[bool, Optional[str]]:
    try:
        pubkey_bytes = _hex_to_bytes_allow_0x(pubkey_hex, name="signer", expected_nbytes=BLS_PUBKEY_BYTES)
        sig_bytes = _hex_to_bytes_allow_0x(signature_hex, name="signature", expected_nbytes=BLS_SIGNATURE_BYTES)
        msg_hash = request_message(kind, fields, chain_id=chain_id)
        ok = bool(G2Basic.Verify(pubkey_bytes, msg_hash, sig_bytes))
        if not ok:
            return False, "invalid request signature"
        return True, None
    except Exception as exc:
        return False, f"request signature verification error: {exc}"


def require_authority(
    authority: Authority, kind: str, fields: Mapping[str, Any], *, config: EngineConfig
) -> None:
    """
    Raises:
        ValidationRejection: `missing_signer` or `bad_signature`
    """
    if not authority.signer or not authority.is_signer:
        raise ValidationRejection("missing_signer")
    if not config.require_signatures:
        return
    if authority.signature is None:
        raise ValidationRejection("bad_signature")
    ok, _err = verify_request_signature(
        kind,
        fields,
        pubkey_hex=authority.signer,
        signature_hex=authority.signature,
        chain_id=config.chain_id,
    )
    if not ok:
        raise ValidationRejection("bad_signature")
