"""
Tests for API Pydantic schemas.

Validates that:
- Request models accept snarkjs JSON and reject incomplete bodies
- Error codes are properly structured
- The OpenAPI schema lists every route and response model
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    ActionResponse,
    ApiErrorCode,
    CreateTableRequest,
    DrawRequest,
    ErrorResponse,
    GameTypeName,
    ProofModel,
    ShootRequest,
    TcgStateResponse,
    VerificationKeyModel,
)
from ..crypto import dump_proof, dump_verification_key
from ..engine_core import ErrorCode


class TestPydanticSchemas:
    """Tests for Pydantic schema validation."""

    def test_verification_key_from_snarkjs(self, proofs, bn_curve):
        """A dumped key parses, and unknown snarkjs fields are ignored."""
        data = dump_verification_key(proofs.vk, bn_curve)
        data["vk_alphabeta_12"] = [[["1", "2"]]]
        model = VerificationKeyModel(**data)
        assert model.nPublic == 3
        assert len(model.IC) == 4
        assert model.curve == "bn128"

    def test_proof_requires_all_points(self):
        with pytest.raises(ValidationError):
            ProofModel(pi_a=["1", "2", "1"], pi_b=[["1", "2"]])

    def test_scalars_accept_ints_and_strings(self, proofs, bn_curve):
        data = dump_proof(proofs.forge(), bn_curve)
        data["pi_a"] = [1, 2, 1]
        model = ProofModel(**data)
        assert model.pi_a == [1, 2, 1]

    def test_shoot_request(self, proofs, bn_curve):
        request = ShootRequest(
            player="alice",
            shot_index=3,
            claimed_result=1,
            proof=ProofModel(**dump_proof(proofs.forge(), bn_curve)),
            public_signals=["12", "3", "1"],
        )
        assert request.public_signals == ["12", "3", "1"]

    def test_shoot_request_requires_signals(self, proofs, bn_curve):
        with pytest.raises(ValidationError):
            ShootRequest(
                player="alice",
                shot_index=3,
                claimed_result=1,
                proof=ProofModel(**dump_proof(proofs.forge(), bn_curve)),
            )

    def test_draw_request_defaults(self):
        request = DrawRequest(player="alice", card_value=4)
        assert request.proof is None
        assert request.public_signals == []

    def test_create_table_request(self):
        assert CreateTableRequest(game_type="battleship").game_type == GameTypeName.BATTLESHIP
        with pytest.raises(ValidationError):
            CreateTableRequest(game_type="poker")

    def test_action_response_defaults(self):
        response = ActionResponse(table_id="t", action="start", value=1)
        assert response.success is True
        assert response.events == []

    def test_tcg_state_defaults(self):
        state = TcgStateResponse(table_id="t")
        assert (state.hp1, state.hp2) == (0, 0)
        assert state.phase == "not_started"


class TestErrorCodes:
    """Tests for error code definitions."""

    def test_error_response_schema(self):
        error = ErrorResponse(error="Table x not found", error_code=ApiErrorCode.TABLE_NOT_FOUND.value)
        data = error.model_dump()
        assert data["success"] is False
        assert data["error_code"] == "TABLE_NOT_FOUND"
        assert data["details"] is None

    def test_error_code_values_are_strings(self):
        for code in list(ApiErrorCode) + list(ErrorCode):
            assert isinstance(code.value, str)
            assert code.value == code.name

    def test_malformed_proof_shared(self):
        """The API and engine agree on the malformed-proof code."""
        assert ApiErrorCode.MALFORMED_PROOF.value == ErrorCode.MALFORMED_PROOF.value


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    @pytest.fixture
    def schema(self, verifier):
        from ..api import APIService, create_app
        from ..session import TableManager

        app = create_app(APIService(TableManager(verifier=verifier)))
        return app.openapi()

    def test_openapi_schema_generates(self, schema):
        assert "paths" in schema
        assert "schemas" in schema["components"]

    def test_response_models_in_schema(self, schema):
        schemas = schema["components"]["schemas"]
        for name in [
            "TableResponse",
            "ActionResponse",
            "BattleshipStateResponse",
            "TcgStateResponse",
            "VerifyResponse",
            "ErrorResponse",
        ]:
            assert name in schemas, f"Missing schema: {name}"

    def test_game_routes(self, schema):
        paths = schema["paths"]
        for action in ("start", "commit", "shoot", "end"):
            assert f"/api/v1/tables/{{table_id}}/battleship/{action}" in paths
        for action in (
            "start", "commit", "draw", "creatures", "fireball",
            "attack", "attack-creature", "end-turn", "end",
        ):
            assert f"/api/v1/tables/{{table_id}}/tcg/{action}" in paths

    def test_player_header_documented(self, schema):
        shoot = schema["paths"]["/api/v1/tables/{table_id}/battleship/shoot"]["post"]
        headers = [p["name"] for p in shoot["parameters"] if p["in"] == "header"]
        assert headers == ["X-Player-Id"]
