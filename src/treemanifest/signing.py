from __future__ import annotations

import base64
import binascii
import hashlib
from pathlib import Path
from typing import Literal

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat, PublicFormat
from pydantic import BaseModel, ConfigDict, Field

from .codec import canonical_json_bytes, manifest_sha256
from .errors import SignatureError
from .models import Manifest

SIGNATURE_FORMAT = "treemanifest-signature"
SIGNATURE_VERSION = 1


class ManifestSignature(BaseModel):
    """
    Detached signature document written next to a manifest.

    The Ed25519 signature covers the canonical JSON of every field except
    ``signature`` itself, so the manifest digest and the signer's key id are
    both bound by it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    format: Literal["treemanifest-signature"] = SIGNATURE_FORMAT
    version: Literal[1] = SIGNATURE_VERSION
    algorithm: Literal["ed25519"] = "ed25519"
    manifest_digest: str = Field(pattern=r"^sha256:[0-9a-f]{64}$")
    key_id: str = Field(pattern=r"^[0-9a-f]{16}$")
    signature: str = ""  # base64

    def signed_payload(self) -> bytes:
        return canonical_json_bytes(self.model_dump(mode="json", exclude={"signature"}))


def _raw_key(key_b64: str, what: str) -> bytes:
    try:
        raw = base64.b64decode(key_b64.strip(), validate=True)
    except binascii.Error as e:
        raise ValueError(f"{what} is not valid base64") from e
    if len(raw) != 32:
        raise ValueError(f"{what} must decode to exactly 32 bytes")
    return raw


def load_private_key(key_b64: str) -> Ed25519PrivateKey:
    return Ed25519PrivateKey.from_private_bytes(_raw_key(key_b64, "private key"))


def load_public_key(key_b64: str) -> Ed25519PublicKey:
    return Ed25519PublicKey.from_public_bytes(_raw_key(key_b64, "public key"))


def key_id(public_key: Ed25519PublicKey) -> str:
    """Short fingerprint recorded in signatures: first 16 hex chars of sha256(raw public key)."""
    raw = public_key.public_bytes(encoding=Encoding.Raw, format=PublicFormat.Raw)
    return hashlib.sha256(raw).hexdigest()[:16]


def generate_keypair() -> tuple[str, str]:
    """Returns (private_key_b64, public_key_b64)."""
    priv = Ed25519PrivateKey.generate()
    priv_raw = priv.private_bytes(encoding=Encoding.Raw, format=PrivateFormat.Raw, encryption_algorithm=NoEncryption())
    pub_raw = priv.public_key().public_bytes(encoding=Encoding.Raw, format=PublicFormat.Raw)
    return base64.b64encode(priv_raw).decode("ascii"), base64.b64encode(pub_raw).decode("ascii")


def sign_manifest(manifest: Manifest, private_key: Ed25519PrivateKey) -> ManifestSignature:
    unsigned = ManifestSignature(
        manifest_digest=manifest_sha256(manifest),
        key_id=key_id(private_key.public_key()),
    )
    sig = private_key.sign(unsigned.signed_payload())
    return unsigned.model_copy(update={"signature": base64.b64encode(sig).decode("ascii")})


def verify_manifest(manifest: Manifest, public_key: Ed25519PublicKey, signature: ManifestSignature) -> str:
    """
    Check ``signature`` against ``manifest`` and ``public_key``.

    Returns the manifest digest; raises SignatureError naming the first
    mismatch (manifest digest, key id, then the Ed25519 signature).
    """
    digest = manifest_sha256(manifest)
    if signature.manifest_digest != digest:
        raise SignatureError(f"manifest digest {digest} does not match signed {signature.manifest_digest}")

    expected_id = key_id(public_key)
    if signature.key_id != expected_id:
        raise SignatureError(f"signed by key {signature.key_id}, not {expected_id}")

    try:
        raw_sig = base64.b64decode(signature.signature, validate=True)
        public_key.verify(raw_sig, signature.signed_payload())
    except (binascii.Error, InvalidSignature) as e:
        raise SignatureError("Ed25519 signature does not verify") from e
    return digest


def write_signature(path: Path, signature: ManifestSignature) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(canonical_json_bytes(signature.model_dump(mode="json")) + b"\n")


def read_signature(path: Path) -> ManifestSignature:
    return ManifestSignature.model_validate_json(path.read_bytes())
