from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterator, Optional, Protocol, Tuple

from tilematch.constants import MAX_MOVES
from tilematch.ledger.economy import PlayerEconomy

logger = logging.getLogger(__name__)


class EconomyStore(Protocol):
    """Persistence seam for PlayerEconomy records.

    Implementations hand out copies: a record only changes through put().
    Serialising concurrent read-modify-write sequences is the ledger's job.
    """

    def get(self, user_id: str) -> Optional[PlayerEconomy]:
        ...

    def put(self, user_id: str, economy: PlayerEconomy) -> None:
        ...

    def all(self) -> Iterator[Tuple[str, PlayerEconomy]]:
        ...


class InMemoryEconomyStore:
    def __init__(self, records: Dict[str, PlayerEconomy] | None = None) -> None:
        self._records: Dict[str, PlayerEconomy] = {
            user_id: economy.copy() for user_id, economy in (records or {}).items()
        }
        self._guard = threading.Lock()

    def get(self, user_id: str) -> Optional[PlayerEconomy]:
        with self._guard:
            record = self._records.get(user_id)
            return record.copy() if record is not None else None

    def put(self, user_id: str, economy: PlayerEconomy) -> None:
        with self._guard:
            self._records[user_id] = economy.copy()

    def all(self) -> Iterator[Tuple[str, PlayerEconomy]]:
        with self._guard:
            snapshot = [(user_id, record.copy()) for user_id, record in self._records.items()]
        return iter(snapshot)


class JsonEconomyStore(InMemoryEconomyStore):
    """In-memory store mirrored to a JSON file after every put.

    A missing or unreadable file, or one whose contents are not a mapping of
    user ids to economy records, starts an empty store. A put only lands in
    memory once the file write has succeeded; writes go to a sibling temporary
    file that then replaces the original.
    """

    def __init__(self, path: Path | str) -> None:
        super().__init__()
        self._path = Path(path)
        self._records = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> Dict[str, PlayerEconomy]:
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError:
            logger.warning("Economy file %s is not valid JSON; starting empty", self._path)
            return {}
        try:
            return self._decode(payload)
        except (TypeError, ValueError) as exc:
            logger.warning("Economy file %s is malformed (%s); starting empty", self._path, exc)
            return {}

    @staticmethod
    def _decode(payload) -> Dict[str, PlayerEconomy]:
        if not isinstance(payload, dict):
            raise TypeError(f"expected an object at top level, got {type(payload).__name__}")
        records: Dict[str, PlayerEconomy] = {}
        for user_id, entry in payload.items():
            if not isinstance(entry, dict):
                raise TypeError(f"record for {user_id!r} is not an object")
            reset_raw = entry.get("resetAt")
            records[user_id] = PlayerEconomy(
                score=int(entry.get("score", 0)),
                moves_remaining=int(entry.get("movesRemaining", MAX_MOVES)),
                reset_at=datetime.fromisoformat(reset_raw) if reset_raw else None,
            )
        return records

    def put(self, user_id: str, economy: PlayerEconomy) -> None:
        with self._guard:
            updated = dict(self._records)
            updated[user_id] = economy.copy()
            self._write(updated)
            self._records = updated

    def _write(self, records: Dict[str, PlayerEconomy]) -> None:
        payload = {
            user_id: {
                "score": record.score,
                "movesRemaining": record.moves_remaining,
                "resetAt": record.reset_at.isoformat() if record.reset_at else None,
            }
            for user_id, record in records.items()
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2, sort_keys=True)
            os.replace(tmp_path, self._path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
