"""
ZK Arena - Hidden-information games with zero-knowledge proofs

Two players commit hashes of their private state (a ship board, a deck)
and back every claimed outcome with a Groth16 proof. The engine provides:
- Elliptic-curve arithmetic and pairing checks
- Groth16 verification
- Commit-once ledgers
- Proof-gated Battleship and card-combat state machines
- An HTTP API and a CLI
"""

__version__ = "0.1.0"
