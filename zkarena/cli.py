"""
ZK Arena CLI - Command-line interface for the engine.

Usage:
    zkarena verify <vk.json> <proof.json> [--public public.json] [--curve NAME]
    zkarena serve [--host HOST] [--port PORT]

verify exits 0 when the proof is valid, 1 when it is rejected and 2 when
the inputs are malformed.
"""

import argparse
import json
import logging
import sys

logger = logging.getLogger(__name__)

EXIT_VALID = 0
EXIT_INVALID = 1
EXIT_MALFORMED = 2


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ZK Arena - Proof-gated hidden-information games",
        prog="zkarena",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Verify command
    verify_parser = subparsers.add_parser("verify", help="Verify a Groth16 proof")
    verify_parser.add_argument("vk_file", help="Path to verification_key.json")
    verify_parser.add_argument("proof_file", help="Path to proof.json")
    verify_parser.add_argument("--public", "-p", help="Path to public.json (signals)")
    verify_parser.add_argument(
        "--curve",
        help="Curve name (default: the key's 'curve' field, else bls12_381)",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "verify":
        sys.exit(cmd_verify(args))
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _load_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def cmd_verify(args) -> int:
    """Verify a proof from snarkjs JSON files."""
    from .crypto import (
        CurveAdapter,
        Groth16Verifier,
        load_proof,
        load_verification_key,
        parse_public_signals,
    )

    try:
        vk_data = _load_json(args.vk_file)
        proof_data = _load_json(args.proof_file)
        signals_data = _load_json(args.public) if args.public else proof_data.get("publicSignals", [])
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error: {e}")
        return EXIT_MALFORMED

    try:
        curve = CurveAdapter(args.curve or vk_data.get("curve") or "bls12_381")
        vk = load_verification_key(vk_data, curve)
        proof = load_proof(proof_data, curve)
        signals = parse_public_signals(signals_data)
        valid = Groth16Verifier(curve).verify(vk, proof, signals)
    except (KeyError, TypeError, ValueError) as e:
        print(f"Malformed input: {e}")
        return EXIT_MALFORMED

    print(f"Curve: {curve.name}")
    print(f"Public signals: {len(signals)}")
    print("Proof is VALID" if valid else "Proof is INVALID")
    return EXIT_VALID if valid else EXIT_INVALID


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    logger.info("Serving ZK Arena API on %s:%d", args.host, args.port)
    uvicorn.run("zkarena.api.app:get_app", factory=True, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
