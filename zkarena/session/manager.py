"""
Table Manager - Creates and manages game tables.

A table is one engine instance with its own store, verification key and
event log, i.e. one deployed game. Sessions (play-throughs) live inside
a table and are restarted by start_game; tables outlive them.

PERSISTENCE RULES:
- Tables are in-memory only
- Closing a table drops its store, key and events
- The verifier, authenticator, session-id source and hub are shared
- Table ids are claimed under a lock; each engine serializes its own calls
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import threading
import time
import uuid

from ..crypto import CurveAdapter, Groth16Verifier
from ..engine_core import (
    Authenticator,
    GameEngine,
    HubClient,
    InMemorySessionStore,
    MonotonicSequence,
    NullHub,
    RecordingEventSink,
    SequenceSource,
    TrustingAuthenticator,
)
from ..games.battleship import BattleshipEngine, BattleshipRules
from ..games.tcg import TcgEngine, TcgRules

logger = logging.getLogger(__name__)


class GameType(Enum):
    """Games a table can host."""
    BATTLESHIP = "battleship"
    TCG = "tcg"


@dataclass
class Table:
    """One engine plus its bookkeeping."""
    table_id: str
    game_type: GameType
    engine: GameEngine
    events: RecordingEventSink
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    def touch(self) -> None:
        self.last_activity = time.time()

    def is_active(self) -> bool:
        """A game is in progress (started and not ended)."""
        session = self.engine.session()
        return session is not None and session.started and not session.ended

    @property
    def initialized(self) -> bool:
        return self.engine.verification_key is not None


class TableManager:
    """
    Manages game tables.

    Responsibilities:
    - Create tables by game type
    - Track open tables
    - Clean up idle tables
    """

    def __init__(
        self,
        verifier: Groth16Verifier | None = None,
        authenticator: Authenticator | None = None,
        sequence: SequenceSource | None = None,
        hub: HubClient | None = None,
        battleship_rules: BattleshipRules | None = None,
        tcg_rules: TcgRules | None = None,
        admin: str | None = None,
        max_events: int = 1000,
    ):
        self.verifier = verifier or Groth16Verifier(CurveAdapter())
        self.authenticator = authenticator or TrustingAuthenticator()
        self.sequence = sequence or MonotonicSequence()
        self.hub = hub or NullHub()
        self.battleship_rules = battleship_rules or BattleshipRules()
        self.tcg_rules = tcg_rules or TcgRules()
        self.admin = admin
        self.max_events = max_events
        self._tables: dict[str, Table] = {}
        self._lock = threading.Lock()

    @property
    def curve(self) -> CurveAdapter:
        return self.verifier.curve

    def create_table(self, game_type: GameType, table_id: str | None = None) -> Table:
        """
        Create a new table hosting one game.

        Args:
            game_type: Which engine to build
            table_id: Optional explicit id (must be unused)

        Returns:
            New Table, not yet initialized with a verification key
        """
        table_id = table_id or str(uuid.uuid4())
        events = RecordingEventSink(max_events=self.max_events)
        common = dict(
            store=InMemorySessionStore(),
            authenticator=self.authenticator,
            events=events,
            sequence=self.sequence,
            hub=self.hub,
            admin=self.admin,
        )
        if game_type == GameType.BATTLESHIP:
            engine = BattleshipEngine(self.verifier, rules=self.battleship_rules, **common)
        else:
            engine = TcgEngine(self.verifier, rules=self.tcg_rules, **common)

        table = Table(table_id=table_id, game_type=game_type, engine=engine, events=events)
        with self._lock:
            if table_id in self._tables:
                raise ValueError(f"Table {table_id} already exists")
            self._tables[table_id] = table
        logger.debug("Created %s table %s", game_type.value, table_id)
        return table

    def get_table(self, table_id: str) -> Table | None:
        """Get a table by ID."""
        return self._tables.get(table_id)

    def close_table(self, table_id: str) -> bool:
        """Remove a table and everything it holds. Returns False if unknown."""
        table = self._tables.pop(table_id, None)
        if table is None:
            return False
        table.engine.store.clear_session()
        table.events.clear()
        logger.debug("Closed table %s", table_id)
        return True

    def list_tables(self, game_type: GameType | None = None) -> list[Table]:
        return [
            t for t in self._tables.values()
            if game_type is None or t.game_type == game_type
        ]

    def cleanup_stale_tables(self, max_age_seconds: int = 3600) -> list[str]:
        """
        Close tables idle for longer than max_age with no game in progress.

        Called periodically to free memory.
        """
        current_time = time.time()
        stale = [
            table_id for table_id, table in list(self._tables.items())
            if current_time - table.last_activity > max_age_seconds and not table.is_active()
        ]
        for table_id in stale:
            self.close_table(table_id)
        if stale:
            logger.info("Closed %d stale tables", len(stale))
        return stale
