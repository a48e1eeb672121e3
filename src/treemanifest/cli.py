from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .audit import BuildRecord, record_build
from .builder import build_manifest
from .codec import manifest_sha256, manifest_to_bytes, read_manifest, write_manifest
from .config import BuildOptions, SymlinkPolicy
from .errors import ManifestBuildError, SignatureError
from .filters import ExcludeRules
from .paths import get_paths
from .signing import (
    generate_keypair,
    load_private_key,
    load_public_key,
    read_signature,
    sign_manifest,
    verify_manifest,
    write_signature,
)

logger = logging.getLogger("treemanifest.cli")


def _cmd_build(args: argparse.Namespace) -> int:
    opts = BuildOptions.from_env().with_overrides(
        digest_algorithm=args.digest,
        symlink_policy=args.symlink_policy,
    )
    rules = ExcludeRules(args.exclude)

    out_path: Path | None = args.out
    priv_key = load_private_key(args.sign_key) if args.sign_key else None
    sig_path: Path | None = None
    if priv_key is not None:
        sig_path = args.sig_out or (out_path.with_suffix(out_path.suffix + ".sig") if out_path else None)
        if sig_path is None:
            raise ValueError("--sign-key without --out requires --sig-out")

    manifest = build_manifest(args.root, rules if rules else None, options=opts)
    address = manifest_sha256(manifest)

    if out_path is None:
        sys.stdout.write(manifest_to_bytes(manifest).decode("utf-8") + "\n")
    else:
        write_manifest(out_path, manifest)
        logger.info("wrote %s (%s)", out_path, address)

    if priv_key is not None and sig_path is not None:
        write_signature(sig_path, sign_manifest(manifest, priv_key))
        logger.info("wrote signature %s", sig_path)

    if not args.no_audit:
        audit_path = args.audit_log or get_paths().audit_log
        record_build(
            audit_path,
            BuildRecord(
                root=str(Path(args.root).resolve()),
                manifest_digest=address,
                entries=len(manifest),
                digest_algorithm=opts.digest_algorithm,
                symlink_policy=opts.symlink_policy.value,
                output=str(out_path) if out_path else None,
                signed=priv_key is not None,
            ),
        )
    return 0


def _cmd_keygen(args: argparse.Namespace) -> int:
    priv, pub = generate_keypair()
    print(f"private_key_b64={priv}")
    print(f"public_key_b64={pub}")
    return 0


def _cmd_sign(args: argparse.Namespace) -> int:
    manifest = read_manifest(args.manifest)
    sig = sign_manifest(manifest, load_private_key(args.private_key_b64))

    out_path: Path = args.out or args.manifest.with_suffix(args.manifest.suffix + ".sig")
    write_signature(out_path, sig)
    print(f"signed {sig.manifest_digest} key={sig.key_id}")
    return 0


def _cmd_verify(args: argparse.Namespace) -> int:
    manifest = read_manifest(args.manifest)
    pub_key = load_public_key(args.public_key_b64)
    sig = read_signature(args.signature)
    try:
        digest = verify_manifest(manifest, pub_key, sig)
    except SignatureError as e:
        print(f"signature verification FAILED: {e}", file=sys.stderr)
        return 1
    print(f"OK {digest}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="treemanifest", description="Deterministic manifests of directory trees.")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = p.add_subparsers(dest="command", required=True)

    b = sub.add_parser("build", help="Build the manifest of a directory tree.")
    b.add_argument("root", type=Path)
    b.add_argument("--out", type=Path, default=None, help="Write the manifest here (default: stdout).")
    b.add_argument("--exclude", action="append", default=[], metavar="PATTERN", help="Glob to exclude (repeatable).")
    b.add_argument("--digest", type=str, default=None, help="Digest algorithm (default: sha256).")
    b.add_argument(
        "--symlink-policy",
        choices=[sp.value for sp in SymlinkPolicy],
        default=None,
        help="Handling of relative symlinks that leave the root.",
    )
    b.add_argument("--sign-key", type=str, default=None, help="Base64 Ed25519 private key; writes a detached signature.")
    b.add_argument("--sig-out", type=Path, default=None, help="Signature output path (default: <out>.sig).")
    b.add_argument("--audit-log", type=Path, default=None, help="Audit log path (default: user data dir).")
    b.add_argument("--no-audit", action="store_true", help="Do not append to the audit log.")
    b.set_defaults(func=_cmd_build)

    k = sub.add_parser("keygen", help="Generate an Ed25519 keypair (base64).")
    k.set_defaults(func=_cmd_keygen)

    s = sub.add_parser("sign", help="Sign an existing manifest.")
    s.add_argument("manifest", type=Path)
    s.add_argument("private_key_b64", type=str)
    s.add_argument("--out", type=Path, default=None, help="Signature document path (default: <manifest>.sig).")
    s.set_defaults(func=_cmd_sign)

    v = sub.add_parser("verify", help="Verify a manifest signature.")
    v.add_argument("manifest", type=Path)
    v.add_argument("public_key_b64", type=str)
    v.add_argument("signature", type=Path)
    v.set_defaults(func=_cmd_verify)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except (ManifestBuildError, ValueError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
