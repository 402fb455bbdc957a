"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine calls
2. Manages tables
3. Parses snarkjs JSON into curve points
4. Binds the caller identity for authentication
5. Maps engine results to responses and status codes

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..crypto import (
    CurveAdapter,
    Groth16Verifier,
    MalformedProof,
    Proof,
    dump_verification_key,
    load_proof,
    load_verification_key,
    parse_public_signals,
)
from ..engine_core import ActionResult, ErrorCode, acting_as, parse_commitment
from ..games.battleship import BattleshipEngine
from ..games.tcg import TcgEngine
from ..session import GameType, Table, TableManager
from .schemas import (
    ActionResponse,
    ApiErrorCode,
    AttackCreatureRequest,
    AttackRequest,
    BattleshipStateResponse,
    CloseTableResponse,
    CommitRequest,
    CreateTableRequest,
    DrawRequest,
    EventInfo,
    EventListResponse,
    FireballRequest,
    GameTypeName,
    PlayCreatureRequest,
    PlayerRequest,
    ProofModel,
    ShootRequest,
    StartGameRequest,
    TableListResponse,
    TableResponse,
    TcgStateResponse,
    VerificationKeyModel,
    VerificationKeyResponse,
    VerifyRequest,
    VerifyResponse,
)


# Phase and ordering errors: the request was fine, the table was not ready for it
CONFLICT_CODES = {
    ErrorCode.GAME_NOT_STARTED,
    ErrorCode.GAME_ALREADY_ENDED,
    ErrorCode.NOT_YOUR_TURN,
    ErrorCode.NOT_ALL_BOARDS_COMMITTED,
    ErrorCode.BOARD_ALREADY_COMMITTED,
    ErrorCode.DECK_ALREADY_COMMITTED,
    ErrorCode.DECK_NOT_COMMITTED,
    ErrorCode.VERIFIER_NOT_INITIALIZED,
    ErrorCode.VERIFIER_ALREADY_INITIALIZED,
    ErrorCode.WIN_CONDITION_NOT_MET,
}


def status_for(error_code: ErrorCode | None) -> int:
    """HTTP status for a failed engine result."""
    if error_code == ErrorCode.UNAUTHORIZED:
        return 403
    if error_code in CONFLICT_CODES:
        return 409
    if error_code == ErrorCode.HANDLER_ERROR:
        return 500
    return 400


class ServiceError(Exception):
    """A request the service refuses; carries everything the error body needs."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()
        table = service.create_table(CreateTableRequest(game_type="battleship"))
        service.init_table(table.table_id, vk_model, caller="admin")
        service.battleship_start(table.table_id, StartGameRequest(...), caller="alice")
    """
    table_manager: TableManager = field(default_factory=TableManager)

    @property
    def curve(self) -> CurveAdapter:
        return self.table_manager.curve

    # =========================================================================
    # Stateless verification
    # =========================================================================

    def verify(self, request: VerifyRequest) -> VerifyResponse:
        """Verify one proof without touching any table."""
        curve = self.curve
        if request.verification_key.curve:
            try:
                curve = CurveAdapter(request.verification_key.curve)
            except ValueError as e:
                raise ServiceError(str(e), ApiErrorCode.VALIDATION_ERROR.value)

        verifier = Groth16Verifier(curve)
        vk = self._parse(lambda: load_verification_key(request.verification_key.model_dump(), curve))
        proof = self._parse(lambda: load_proof(request.proof.model_dump(), curve))
        signals = self._parse(lambda: parse_public_signals(request.public_signals))
        valid = self._parse(lambda: verifier.verify(vk, proof, signals))
        return VerifyResponse(valid=valid, curve=curve.name, public_signal_count=len(signals))

    # =========================================================================
    # Tables
    # =========================================================================

    def create_table(self, request: CreateTableRequest) -> TableResponse:
        try:
            table = self.table_manager.create_table(
                GameType(request.game_type.value), table_id=request.table_id
            )
        except ValueError as e:
            raise ServiceError(str(e), ApiErrorCode.VALIDATION_ERROR.value, status_code=409)
        return self._table_response(table)

    def get_table(self, table_id: str) -> TableResponse:
        return self._table_response(self._table(table_id))

    def list_tables(self) -> TableListResponse:
        tables = [self._table_response(t) for t in self.table_manager.list_tables()]
        return TableListResponse(tables=tables, count=len(tables))

    def close_table(self, table_id: str) -> CloseTableResponse:
        if not self.table_manager.close_table(table_id):
            raise self._not_found(table_id)
        return CloseTableResponse(success=True, table_id=table_id)

    def init_table(
        self,
        table_id: str,
        vk_model: VerificationKeyModel,
        caller: str | None = None,
    ) -> VerificationKeyResponse:
        """Install the table's verification key (once)."""
        table = self._table(table_id)
        vk = self._parse(lambda: load_verification_key(vk_model.model_dump(), self.curve))
        with acting_as(caller):
            result = table.engine.init(vk, caller=caller)
        self._raise_on_failure(result)
        table.touch()
        return self.get_verification_key(table_id)

    def get_verification_key(self, table_id: str) -> VerificationKeyResponse:
        table = self._table(table_id)
        vk = table.engine.verification_key
        return VerificationKeyResponse(
            table_id=table_id,
            initialized=vk is not None,
            verification_key=dump_verification_key(vk, self.curve) if vk else None,
        )

    def list_events(self, table_id: str) -> EventListResponse:
        table = self._table(table_id)
        events = [EventInfo(**e.to_dict()) for e in table.events.events]
        return EventListResponse(table_id=table_id, events=events, count=len(events))

    # =========================================================================
    # Battleship
    # =========================================================================

    def battleship_start(self, table_id: str, request: StartGameRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.BATTLESHIP)
        return self._run(
            table_id, "start", caller,
            lambda: engine.start_game(request.player1, request.player2),
        )

    def battleship_commit(self, table_id: str, request: CommitRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.BATTLESHIP)
        digest = self._commitment(request.commitment)
        return self._run(
            table_id, "commit", caller,
            lambda: engine.commit_board(request.player, digest),
        )

    def battleship_shoot(self, table_id: str, request: ShootRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.BATTLESHIP)
        proof = self._proof(request.proof)
        signals = self._signals(request.public_signals)
        return self._run(
            table_id, "shoot", caller,
            lambda: engine.shoot(
                request.player, request.shot_index, request.claimed_result, proof, signals
            ),
        )

    def battleship_end(self, table_id: str, request: PlayerRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.BATTLESHIP)
        return self._run(table_id, "end", caller, lambda: engine.end_game(request.player))

    def battleship_state(self, table_id: str) -> BattleshipStateResponse:
        engine = self._engine(table_id, GameType.BATTLESHIP)
        session = engine.session()
        if session is None:
            return BattleshipStateResponse(table_id=table_id)
        data = session.to_dict()
        data.pop("player1")
        data.pop("player2")
        return BattleshipStateResponse(table_id=table_id, **data)

    # =========================================================================
    # Card combat
    # =========================================================================

    def tcg_start(self, table_id: str, request: StartGameRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        return self._run(
            table_id, "start", caller,
            lambda: engine.start_game(request.player1, request.player2),
        )

    def tcg_commit(self, table_id: str, request: CommitRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        digest = self._commitment(request.commitment)
        return self._run(
            table_id, "commit", caller,
            lambda: engine.commit_deck(request.player, digest),
        )

    def tcg_draw(self, table_id: str, request: DrawRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        proof = self._proof(request.proof) if request.proof is not None else None
        signals = self._signals(request.public_signals)
        return self._run(
            table_id, "draw", caller,
            lambda: engine.draw_card(request.player, request.card_value, proof, signals),
        )

    def tcg_play_creature(self, table_id: str, request: PlayCreatureRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        return self._run(
            table_id, "play_creature", caller,
            lambda: engine.play_creature(request.player, request.attack, request.health),
        )

    def tcg_fireball(self, table_id: str, request: FireballRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        return self._run(
            table_id, "fireball", caller,
            lambda: engine.play_fireball(request.player, request.target),
        )

    def tcg_attack(self, table_id: str, request: AttackRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        return self._run(
            table_id, "attack", caller,
            lambda: engine.attack(request.player, request.attacker_index, request.target),
        )

    def tcg_attack_creature(self, table_id: str, request: AttackCreatureRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        return self._run(
            table_id, "attack_creature", caller,
            lambda: engine.attack_creature(
                request.player, request.attacker_index, request.target, request.target_index
            ),
        )

    def tcg_end_turn(self, table_id: str, request: PlayerRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        return self._run(table_id, "end_turn", caller, lambda: engine.end_turn(request.player))

    def tcg_end(self, table_id: str, request: PlayerRequest, caller: str | None) -> ActionResponse:
        engine = self._engine(table_id, GameType.TCG)
        return self._run(table_id, "end", caller, lambda: engine.end_game(request.player))

    def tcg_state(self, table_id: str) -> TcgStateResponse:
        engine = self._engine(table_id, GameType.TCG)
        session = engine.session()
        if session is None:
            return TcgStateResponse(table_id=table_id)
        data = session.to_dict()
        hp1, hp2 = data["hp"][session.player1], data["hp"][session.player2]
        data.pop("player1")
        data.pop("player2")
        return TcgStateResponse(table_id=table_id, hp1=hp1, hp2=hp2, **data)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _table(self, table_id: str) -> Table:
        table = self.table_manager.get_table(table_id)
        if table is None:
            raise self._not_found(table_id)
        return table

    def _engine(self, table_id: str, game_type: GameType) -> BattleshipEngine | TcgEngine:
        table = self._table(table_id)
        if table.game_type != game_type:
            raise ServiceError(
                f"Table {table_id} hosts {table.game_type.value}, not {game_type.value}",
                ApiErrorCode.WRONG_GAME_TYPE.value,
            )
        return table.engine

    @staticmethod
    def _not_found(table_id: str) -> ServiceError:
        return ServiceError(
            f"Table {table_id} not found",
            ApiErrorCode.TABLE_NOT_FOUND.value,
            status_code=404,
            details={"table_id": table_id},
        )

    def _run(
        self,
        table_id: str,
        action: str,
        caller: str | None,
        operation: Callable[[], ActionResult],
    ) -> ActionResponse:
        """Run an engine operation as the caller and convert the result."""
        with acting_as(caller):
            result = operation()
        self._raise_on_failure(result)
        self._table(table_id).touch()
        return ActionResponse(
            table_id=table_id,
            action=action,
            value=result.value,
            state_changes=result.state_changes,
            events=[EventInfo(**e.to_dict()) for e in result.events],
        )

    @staticmethod
    def _raise_on_failure(result: ActionResult) -> None:
        if result.success:
            return
        code = result.error_code or ErrorCode.HANDLER_ERROR
        raise ServiceError(result.error or code.value, code.value, status_code=status_for(code))

    @staticmethod
    def _parse(parse: Callable[[], Any]) -> Any:
        """Run a parser, turning input-shape errors into MALFORMED_PROOF."""
        try:
            return parse()
        except (KeyError, TypeError, ValueError) as e:
            raise ServiceError(
                f"Malformed proof input: {e}", ApiErrorCode.MALFORMED_PROOF.value
            ) from e

    def _proof(self, model: ProofModel) -> Proof:
        return self._parse(lambda: load_proof(model.model_dump(), self.curve))

    def _signals(self, values: Sequence[Any]) -> list[int]:
        try:
            return parse_public_signals(values)
        except MalformedProof as e:
            raise ServiceError(str(e), ApiErrorCode.MALFORMED_PROOF.value) from e

    @staticmethod
    def _commitment(text: str) -> bytes:
        try:
            return parse_commitment(text)
        except ValueError as e:
            raise ServiceError(str(e), ApiErrorCode.INVALID_COMMITMENT.value) from e

    def _table_response(self, table: Table) -> TableResponse:
        session = table.engine.session()
        return TableResponse(
            table_id=table.table_id,
            game_type=GameTypeName(table.game_type.value),
            initialized=table.initialized,
            active=table.is_active(),
            created_at=table.created_at,
            session=session.to_dict() if session else None,
        )
