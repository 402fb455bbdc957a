"""
FastAPI Application - REST API for game clients.

Endpoints:
    GET    /api/v1/health                              Health check
    POST   /api/v1/verify                              Verify a proof (stateless)
    POST   /api/v1/tables                              Create table
    GET    /api/v1/tables                              List tables
    GET    /api/v1/tables/{id}                         Get table
    DELETE /api/v1/tables/{id}                         Close table
    POST   /api/v1/tables/{id}/verification-key        Install verification key (once)
    GET    /api/v1/tables/{id}/verification-key        Get verification key
    GET    /api/v1/tables/{id}/events                  Domain events of the table

    POST   /api/v1/tables/{id}/battleship/start|commit|shoot|end
    GET    /api/v1/tables/{id}/battleship/state

    POST   /api/v1/tables/{id}/tcg/start|commit|draw|creatures|fireball|
                                   attack|attack-creature|end-turn|end
    GET    /api/v1/tables/{id}/tcg/state

Caller identity:
    Mutating game routes read the X-Player-Id header and run the engine
    call as that caller. The acting player named in the body must match.

Route handlers are plain functions: pairing checks are CPU-bound and
run in FastAPI's threadpool.
"""

from typing import Annotated, Optional
import logging
import os

from ..crypto import CurveAdapter, Groth16Verifier
from ..engine_core import CallerAuthenticator, TrustingAuthenticator
from ..games.battleship import BattleshipRules
from ..games.tcg import TcgRules

# Environment configuration
ZKARENA_ENV = os.getenv("ZKARENA_ENV", "development")
ZKARENA_CURVE = os.getenv("ZKARENA_CURVE", "bls12_381")
ZKARENA_AUTH_MODE = os.getenv("ZKARENA_AUTH_MODE", "header")
ZKARENA_STRICT_TURNS = os.getenv("ZKARENA_STRICT_TURNS", "0").lower() in ("1", "true", "yes")
ZKARENA_MAX_BOARD_SIZE = int(os.getenv("ZKARENA_MAX_BOARD_SIZE", "7"))
ZKARENA_ADMIN = os.getenv("ZKARENA_ADMIN") or None
ZKARENA_MAX_EVENTS = int(os.getenv("ZKARENA_MAX_EVENTS", "1000"))
ZKARENA_LOG_LEVEL = os.getenv("ZKARENA_LOG_LEVEL", "INFO").upper()
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

SERVICE_NAME = "zkarena"
API_VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def build_service():
    """Build an APIService from the environment configuration."""
    from .service import APIService
    from ..session import TableManager

    if ZKARENA_AUTH_MODE == "trusting":
        authenticator = TrustingAuthenticator()
    elif ZKARENA_AUTH_MODE == "header":
        authenticator = CallerAuthenticator()
    else:
        raise ValueError(f"Unknown ZKARENA_AUTH_MODE: {ZKARENA_AUTH_MODE}")

    manager = TableManager(
        verifier=Groth16Verifier(CurveAdapter(ZKARENA_CURVE)),
        authenticator=authenticator,
        battleship_rules=BattleshipRules(strict_turns=ZKARENA_STRICT_TURNS),
        tcg_rules=TcgRules(max_board_size=ZKARENA_MAX_BOARD_SIZE),
        admin=ZKARENA_ADMIN,
        max_events=ZKARENA_MAX_EVENTS,
    )
    return APIService(table_manager=manager)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Header, Request
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import ServiceError
    from .schemas import (
        # Request models
        VerifyRequest,
        CreateTableRequest,
        VerificationKeyModel,
        StartGameRequest,
        CommitRequest,
        PlayerRequest,
        ShootRequest,
        DrawRequest,
        PlayCreatureRequest,
        FireballRequest,
        AttackRequest,
        AttackCreatureRequest,
        # Response models
        VerifyResponse,
        TableResponse,
        TableListResponse,
        CloseTableResponse,
        VerificationKeyResponse,
        EventListResponse,
        ActionResponse,
        BattleshipStateResponse,
        TcgStateResponse,
        ErrorResponse,
        HealthResponse,
    )

    logging.getLogger("zkarena").setLevel(ZKARENA_LOG_LEVEL)

    app = FastAPI(
        title="ZK Arena API",
        description="""
Hidden-information games backed by Groth16 proofs.

## Flow

1. `POST /tables` creates a Battleship or card-combat table
2. `POST /tables/{id}/verification-key` installs the circuit's key (once)
3. Players start a game, commit their board/deck hashes, then play;
   every claimed private fact carries a proof

## Error Codes

| Status | Meaning |
|--------|---------|
| 400 | Invalid input, rejected proof, malformed proof (`MALFORMED_PROOF`) |
| 403 | `UNAUTHORIZED`: X-Player-Id does not match the acting player |
| 404 | `TABLE_NOT_FOUND` |
| 409 | Phase or turn errors (`GAME_NOT_STARTED`, `NOT_YOUR_TURN`, ...) |
        """,
        version=API_VERSION,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    api_service = service or build_service()
    app.state.service = api_service

    PlayerId = Annotated[Optional[str], Header(alias="X-Player-Id", description="Authenticated caller")]
    errors = {
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    }

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: str,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(),
        )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        return make_error_response(exc.error_code, exc.message, exc.status_code, exc.details)

    # =========================================================================
    # System
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service=SERVICE_NAME,
            version=API_VERSION,
            curve=api_service.curve.name,
        )

    @app.get("/", tags=["System"])
    def root():
        """Root endpoint with API info."""
        return {
            "name": "ZK Arena API",
            "version": API_VERSION,
            "env": ZKARENA_ENV,
            "docs": "/api/docs",
            "health": "/api/v1/health",
        }

    @app.post(
        "/api/v1/verify",
        response_model=VerifyResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Verification"],
        summary="Verify a Groth16 proof",
    )
    def verify_proof(request: VerifyRequest) -> VerifyResponse:
        """
        Verify a snarkjs-format proof against a verification key.

        `valid=false` means the proof is well-formed but rejected.
        Malformed input (wrong signal count, invalid points) is a 400.
        """
        return api_service.verify(request)

    # =========================================================================
    # Tables
    # =========================================================================

    @app.post(
        "/api/v1/tables",
        response_model=TableResponse,
        status_code=201,
        responses={409: {"model": ErrorResponse}},
        tags=["Tables"],
        summary="Create a game table",
    )
    def create_table(request: CreateTableRequest) -> TableResponse:
        return api_service.create_table(request)

    @app.get(
        "/api/v1/tables",
        response_model=TableListResponse,
        tags=["Tables"],
        summary="List tables",
    )
    def list_tables() -> TableListResponse:
        return api_service.list_tables()

    @app.get(
        "/api/v1/tables/{table_id}",
        response_model=TableResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Tables"],
        summary="Get table",
    )
    def get_table(table_id: str) -> TableResponse:
        return api_service.get_table(table_id)

    @app.delete(
        "/api/v1/tables/{table_id}",
        response_model=CloseTableResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Tables"],
        summary="Close table",
    )
    def close_table(table_id: str) -> CloseTableResponse:
        return api_service.close_table(table_id)

    @app.post(
        "/api/v1/tables/{table_id}/verification-key",
        response_model=VerificationKeyResponse,
        responses=errors,
        tags=["Tables"],
        summary="Install the table's verification key",
    )
    def init_table(
        table_id: str,
        request: VerificationKeyModel,
        x_player_id: PlayerId = None,
    ) -> VerificationKeyResponse:
        """Allowed once per table. With ZKARENA_ADMIN set, only the admin may call it."""
        return api_service.init_table(table_id, request, caller=x_player_id)

    @app.get(
        "/api/v1/tables/{table_id}/verification-key",
        response_model=VerificationKeyResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Tables"],
        summary="Get the table's verification key",
    )
    def get_verification_key(table_id: str) -> VerificationKeyResponse:
        return api_service.get_verification_key(table_id)

    @app.get(
        "/api/v1/tables/{table_id}/events",
        response_model=EventListResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Tables"],
        summary="Domain events emitted by the table",
    )
    def list_events(table_id: str) -> EventListResponse:
        return api_service.list_events(table_id)

    # =========================================================================
    # Battleship
    # =========================================================================

    @app.post(
        "/api/v1/tables/{table_id}/battleship/start",
        response_model=ActionResponse,
        responses=errors,
        tags=["Battleship"],
        summary="Start (or restart) a game",
    )
    def battleship_start(
        table_id: str, request: StartGameRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        """Resets any previous game on this table. The caller must be player1."""
        return api_service.battleship_start(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/battleship/commit",
        response_model=ActionResponse,
        responses=errors,
        tags=["Battleship"],
        summary="Commit a board hash",
    )
    def battleship_commit(
        table_id: str, request: CommitRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.battleship_commit(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/battleship/shoot",
        response_model=ActionResponse,
        responses=errors,
        tags=["Battleship"],
        summary="Fire a shot with a proof of its result",
    )
    def battleship_shoot(
        table_id: str, request: ShootRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        """
        The proof's public signals must be
        `[opponent_board_hash, shot_index, claimed_result]`.
        """
        return api_service.battleship_shoot(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/battleship/end",
        response_model=ActionResponse,
        responses=errors,
        tags=["Battleship"],
        summary="End the game (ties go to player1)",
    )
    def battleship_end(
        table_id: str, request: PlayerRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.battleship_end(table_id, request, x_player_id)

    @app.get(
        "/api/v1/tables/{table_id}/battleship/state",
        response_model=BattleshipStateResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Battleship"],
        summary="Current game state",
    )
    def battleship_state(table_id: str) -> BattleshipStateResponse:
        return api_service.battleship_state(table_id)

    # =========================================================================
    # Card combat
    # =========================================================================

    @app.post(
        "/api/v1/tables/{table_id}/tcg/start",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Start (or restart) a duel",
    )
    def tcg_start(
        table_id: str, request: StartGameRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.tcg_start(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/tcg/commit",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Commit a deck hash",
    )
    def tcg_commit(
        table_id: str, request: CommitRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.tcg_commit(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/tcg/draw",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Draw a card with a proof",
    )
    def tcg_draw(
        table_id: str, request: DrawRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        """The proof's public signals must be `[deck_hash, draw_index, card_value]`."""
        return api_service.tcg_draw(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/tcg/creatures",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Play a creature",
    )
    def tcg_play_creature(
        table_id: str, request: PlayCreatureRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.tcg_play_creature(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/tcg/fireball",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Cast a fireball at the opponent",
    )
    def tcg_fireball(
        table_id: str, request: FireballRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.tcg_fireball(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/tcg/attack",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Attack the opponent with a creature",
    )
    def tcg_attack(
        table_id: str, request: AttackRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.tcg_attack(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/tcg/attack-creature",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Attack an opposing creature",
    )
    def tcg_attack_creature(
        table_id: str, request: AttackCreatureRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.tcg_attack_creature(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/tcg/end-turn",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Pass the turn",
    )
    def tcg_end_turn(
        table_id: str, request: PlayerRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        return api_service.tcg_end_turn(table_id, request, x_player_id)

    @app.post(
        "/api/v1/tables/{table_id}/tcg/end",
        response_model=ActionResponse,
        responses=errors,
        tags=["Card Combat"],
        summary="Close a decided duel",
    )
    def tcg_end(
        table_id: str, request: PlayerRequest, x_player_id: PlayerId = None
    ) -> ActionResponse:
        """Only the recorded winner (opponent at zero hit points) may close the duel."""
        return api_service.tcg_end(table_id, request, x_player_id)

    @app.get(
        "/api/v1/tables/{table_id}/tcg/state",
        response_model=TcgStateResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Card Combat"],
        summary="Current duel state",
    )
    def tcg_state(table_id: str) -> TcgStateResponse:
        return api_service.tcg_state(table_id)

    logger.debug("API created (env=%s, curve=%s)", ZKARENA_ENV, api_service.curve.name)
    return app


def get_app():
    """App factory for running directly: uvicorn zkarena.api.app:get_app --factory"""
    return create_app()
