"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between game clients and the engine.
Curve points and scalars use the snarkjs JSON conventions: decimal (or
0x-hex) strings, G1 as [x, y, z], G2 as [[x0, x1], [y0, y1], [z0, z1]].

Error Codes:
- TABLE_NOT_FOUND: Table does not exist or was closed
- UNAUTHORIZED: X-Player-Id does not match the acting player
- MALFORMED_PROOF: Proof, key or public signals cannot be parsed or checked
- PROOF_VERIFICATION_FAILED / INVALID_PROOF: Well-formed proof rejected
- Any engine error code (GAME_NOT_STARTED, NOT_YOUR_TURN, ...)
"""

from enum import Enum
from typing import Optional, Any, Union
from pydantic import BaseModel, Field


Scalar = Union[int, str]


# =============================================================================
# Enums
# =============================================================================

class GameTypeName(str, Enum):
    """Games a table can host."""
    BATTLESHIP = "battleship"
    TCG = "tcg"


class ApiErrorCode(str, Enum):
    """Error codes produced by the API layer itself (engine codes pass through)."""
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    WRONG_GAME_TYPE = "WRONG_GAME_TYPE"
    INVALID_COMMITMENT = "INVALID_COMMITMENT"
    MALFORMED_PROOF = "MALFORMED_PROOF"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Cryptographic payloads
# =============================================================================

class VerificationKeyModel(BaseModel):
    """snarkjs verification_key.json."""
    protocol: Optional[str] = "groth16"
    curve: Optional[str] = None
    nPublic: Optional[int] = None
    vk_alpha_1: list[Scalar]
    vk_beta_2: list[list[Scalar]]
    vk_gamma_2: list[list[Scalar]]
    vk_delta_2: list[list[Scalar]]
    IC: list[list[Scalar]] = Field(..., description="nPublic + 1 G1 points")


class ProofModel(BaseModel):
    """snarkjs proof.json."""
    protocol: Optional[str] = "groth16"
    curve: Optional[str] = None
    pi_a: list[Scalar]
    pi_b: list[list[Scalar]]
    pi_c: list[Scalar]


class VerifyRequest(BaseModel):
    """Stateless verification of one proof."""
    verification_key: VerificationKeyModel
    proof: ProofModel
    public_signals: list[Scalar] = Field(default_factory=list)


class VerifyResponse(BaseModel):
    valid: bool
    curve: str
    public_signal_count: int


# =============================================================================
# Tables
# =============================================================================

class CreateTableRequest(BaseModel):
    game_type: GameTypeName
    table_id: Optional[str] = Field(None, description="Explicit id; generated if omitted")


class TableResponse(BaseModel):
    table_id: str
    game_type: GameTypeName
    initialized: bool = Field(..., description="Verification key installed")
    active: bool = Field(..., description="A game is in progress")
    created_at: float
    session: Optional[dict[str, Any]] = None


class TableListResponse(BaseModel):
    tables: list[TableResponse]
    count: int


class CloseTableResponse(BaseModel):
    success: bool
    table_id: str


class VerificationKeyResponse(BaseModel):
    table_id: str
    initialized: bool
    verification_key: Optional[dict[str, Any]] = None


class EventInfo(BaseModel):
    topic: str
    session_id: Optional[int] = None
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: float


class EventListResponse(BaseModel):
    table_id: str
    events: list[EventInfo]
    count: int


# =============================================================================
# Game actions
# =============================================================================

class StartGameRequest(BaseModel):
    """The caller must be player1."""
    player1: str
    player2: str


class CommitRequest(BaseModel):
    player: str
    commitment: str = Field(..., description="32-byte hash, hex (0x optional)")


class PlayerRequest(BaseModel):
    """Actions that only name the acting player (end turn, end game)."""
    player: str


class ShootRequest(BaseModel):
    player: str = Field(..., description="Shooter")
    shot_index: int = Field(..., description="Cell index, row-major")
    claimed_result: int = Field(..., description="1 = hit, 0 = miss")
    proof: ProofModel
    public_signals: list[Scalar] = Field(
        ..., description="[board_hash, shot_index, claimed_result]"
    )


class DrawRequest(BaseModel):
    player: str
    card_value: int
    proof: Optional[ProofModel] = None
    public_signals: list[Scalar] = Field(
        default_factory=list, description="[deck_hash, draw_index, card_value]"
    )


class PlayCreatureRequest(BaseModel):
    player: str
    attack: int
    health: int


class FireballRequest(BaseModel):
    player: str
    target: str


class AttackRequest(BaseModel):
    player: str
    attacker_index: int
    target: str


class AttackCreatureRequest(BaseModel):
    player: str
    attacker_index: int
    target: str
    target_index: int


class ActionResponse(BaseModel):
    """Result of an accepted action."""
    success: bool = True
    table_id: str
    action: str
    value: Optional[Any] = None
    state_changes: list[str] = Field(default_factory=list)
    events: list[EventInfo] = Field(default_factory=list)


# =============================================================================
# Game state views
# =============================================================================

class BattleshipStateResponse(BaseModel):
    table_id: str
    started: bool = False
    ended: bool = False
    winner: Optional[str] = None
    session_id: Optional[int] = None
    phase: str = "not_started"
    turn: Optional[str] = None
    hits: dict[str, int] = Field(default_factory=dict)
    total_shots: int = 0
    committed: dict[str, bool] = Field(default_factory=dict)


class CreatureInfo(BaseModel):
    attack: int
    health: int


class TcgStateResponse(BaseModel):
    table_id: str
    started: bool = False
    ended: bool = False
    winner: Optional[str] = None
    session_id: Optional[int] = None
    phase: str = "not_started"
    turn: Optional[str] = None
    hp1: int = 0
    hp2: int = 0
    hp: dict[str, int] = Field(default_factory=dict)
    board: dict[str, list[CreatureInfo]] = Field(default_factory=dict)
    draw_index: dict[str, int] = Field(default_factory=dict)
    committed: dict[str, bool] = Field(default_factory=dict)


# =============================================================================
# System
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error body."""
    success: bool = False
    error: str
    error_code: str
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    curve: str
