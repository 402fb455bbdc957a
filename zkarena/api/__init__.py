"""
API Module - HTTP interface for game clients.

Exposes the engines via REST API. A client:
1. Creates a table for a game
2. Installs the circuit's verification key
3. Starts a game and commits private-state hashes
4. Plays, attaching a proof to every claimed private fact
5. Reads state and domain events

All state is in-memory and table-scoped.
"""

from .schemas import (
    # Requests
    VerifyRequest,
    CreateTableRequest,
    VerificationKeyModel,
    ProofModel,
    StartGameRequest,
    CommitRequest,
    PlayerRequest,
    ShootRequest,
    DrawRequest,
    PlayCreatureRequest,
    FireballRequest,
    AttackRequest,
    AttackCreatureRequest,
    # Responses
    VerifyResponse,
    TableResponse,
    TableListResponse,
    ActionResponse,
    BattleshipStateResponse,
    TcgStateResponse,
    ErrorResponse,
)
from .service import APIService, ServiceError
from .app import create_app

__all__ = [
    # Requests
    "VerifyRequest",
    "CreateTableRequest",
    "VerificationKeyModel",
    "ProofModel",
    "StartGameRequest",
    "CommitRequest",
    "PlayerRequest",
    "ShootRequest",
    "DrawRequest",
    "PlayCreatureRequest",
    "FireballRequest",
    "AttackRequest",
    "AttackCreatureRequest",
    # Responses
    "VerifyResponse",
    "TableResponse",
    "TableListResponse",
    "ActionResponse",
    "BattleshipStateResponse",
    "TcgStateResponse",
    "ErrorResponse",
    # Service
    "APIService",
    "ServiceError",
    "create_app",
]
