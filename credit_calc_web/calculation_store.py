"""Persistence layer for saved calculations.

The web app keeps each user's calculation history (revolving and mortgage
results) in an external database. It defaults to SQLite for local
development, but accepts any SQLAlchemy-compatible URL (e.g.
PostgreSQL/MySQL). Results are stored verbatim as JSON.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, or_, select
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class SavedCalculationModel(Base):
    __tablename__ = "saved_calculations"

    id = Column(String(64), primary_key=True)
    user_token = Column(String(64), index=True, nullable=False)
    kind = Column(String(16), index=True, nullable=False)  # "revolving" or "mortgage"
    name = Column(String(255), nullable=False)
    preset_id = Column(String(64), nullable=True)
    result_json = Column(Text, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class CalculationStore:
    """Database-backed calculation history, scoped per user token."""

    def __init__(self, url: str, *, max_per_user: int = 50) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_user = max_per_user

    def list_calculations(
        self, user_token: str, kind: Optional[str] = None, query: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Return the user's calculations, most recent first.

        ``query`` matches the name or preset id, case-insensitively.
        """
        if not user_token:
            return []
        statement = select(SavedCalculationModel).where(SavedCalculationModel.user_token == user_token)
        if kind:
            statement = statement.where(SavedCalculationModel.kind == kind)
        if query:
            pattern = f"%{query.lower()}%"
            statement = statement.where(
                or_(
                    SavedCalculationModel.name.ilike(pattern),
                    SavedCalculationModel.preset_id.ilike(pattern),
                )
            )
        statement = statement.order_by(SavedCalculationModel.created_at.desc())
        with self._session_factory() as session:
            rows: Iterable[SavedCalculationModel] = session.execute(statement).scalars()
            return [self._to_dict(row) for row in rows]

    def get_calculation(self, user_token: str, calculation_id: str) -> Optional[Dict[str, Any]]:
        if not user_token:
            return None
        with self._session_factory() as session:
            row = session.get(SavedCalculationModel, calculation_id)
            if row is None or row.user_token != user_token:
                return None
            return self._to_dict(row)

    def add_calculation(self, user_token: str, kind: str, result: Dict[str, Any]) -> None:
        """Store a serialized result record (see ``credit_calc.utils.to_jsonable``)."""
        if not user_token:
            return
        created_at = result.get("created_at")
        payload = SavedCalculationModel(
            id=result["id"],
            user_token=user_token,
            kind=kind,
            name=result["name"],
            preset_id=result.get("preset_id"),
            result_json=json.dumps(result),
            created_at=datetime.fromisoformat(created_at).replace(tzinfo=None) if created_at else _utcnow(),
        )
        with self._session_factory() as session:
            session.add(payload)
            session.commit()
        logger.info("Saved %s calculation %s", kind, result["id"])
        self._trim_user(user_token)

    def duplicate_calculation(
        self, user_token: str, calculation_id: str, new_id: str
    ) -> Optional[Dict[str, Any]]:
        """Copy a saved calculation under ``new_id`` with a "(Copy)" name."""
        original = self.get_calculation(user_token, calculation_id)
        if original is None:
            return None
        created_at = _utcnow()
        result = dict(original["result"])
        result.update(id=new_id, name=f"{original['name']} (Copy)", created_at=created_at.isoformat())
        self.add_calculation(user_token, original["kind"], result)
        return self.get_calculation(user_token, new_id)

    def remove_calculation(self, user_token: str, calculation_id: str) -> bool:
        if not user_token:
            return False
        with self._session_factory() as session:
            row = session.get(SavedCalculationModel, calculation_id)
            if row and row.user_token == user_token:
                session.delete(row)
                session.commit()
                logger.info("Removed calculation %s", calculation_id)
                return True
        return False

    def clear_calculations(self, user_token: str) -> None:
        if not user_token:
            return
        with self._session_factory() as session:
            session.execute(
                SavedCalculationModel.__table__.delete().where(
                    SavedCalculationModel.user_token == user_token
                )
            )
            session.commit()

    def _trim_user(self, user_token: str) -> None:
        if not self._max_per_user or self._max_per_user < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(SavedCalculationModel)
                .where(SavedCalculationModel.user_token == user_token)
                .order_by(SavedCalculationModel.created_at.desc())
            ).scalars().all()
            if len(rows) <= self._max_per_user:
                return
            for row in rows[self._max_per_user :]:
                session.delete(row)
            session.commit()

    @staticmethod
    def _to_dict(row: SavedCalculationModel) -> Dict[str, Any]:
        return {
            "id": row.id,
            "kind": row.kind,
            "name": row.name,
            "preset_id": row.preset_id,
            "result": json.loads(row.result_json),
            "created_at": row.created_at.isoformat(),
        }


def create_store_from_env(url: Optional[str], max_per_user: Optional[str] = None) -> CalculationStore:
    return CalculationStore(
        url or "sqlite:///calculations.sqlite3",
        max_per_user=int(max_per_user) if max_per_user else 50,
    )
