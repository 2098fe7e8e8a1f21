"""Persistence of versioned entities: lineage queries and guarded writes."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Type

from sqlalchemy import inspect
from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.models.course import Course
from app.models.degree import Degree
from app.workflow.errors import StaleState, Unavailable, WorkflowError
from app.workflow.kinds import EntityKind
from app.workflow.lineage import latest_of, newer_than, validate_lineage

logger = logging.getLogger(__name__)

MODELS: Dict[str, Type] = {"course": Course, "degree": Degree}


@dataclass
class RowWrite:
    """One row of an ``atomic_update``.

    ``entity_id`` None inserts a new row from ``fields``. Otherwise the row is
    updated only if every column in ``expected`` still holds the given value.
    """

    entity_id: Optional[int]
    fields: Dict[str, Any]
    expected: Dict[str, Any] = field(default_factory=dict)


@contextmanager
def guarded_transaction(db: Session, conflict: Type[WorkflowError] = StaleState, conflict_reason: str = None):
    """Commit on success; roll back and translate database failures otherwise."""
    try:
        yield
        db.commit()
    except WorkflowError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        logger.info("[store] integrity conflict: %s", exc.orig)
        raise conflict(conflict_reason or "The record was changed by another request; reload and retry.") from exc
    except (OperationalError, PoolTimeoutError) as exc:
        db.rollback()
        logger.warning("[store] database unavailable: %s", exc)
        raise Unavailable("The database did not respond in time; please retry shortly.") from exc
    except Exception:
        db.rollback()
        raise


@contextmanager
def guarded_read(db: Session):
    try:
        yield
    except (OperationalError, PoolTimeoutError) as exc:
        db.rollback()
        logger.warning("[store] database unavailable: %s", exc)
        raise Unavailable("The database did not respond in time; please retry shortly.") from exc


class LineageStore:
    """Lineage queries and write path for one entity kind.

    Writes only flush; wrap them in ``transaction()`` so a group of writes is
    committed, or rolled back, as a unit.
    """

    def __init__(self, db: Session, kind: EntityKind):
        self.db = db
        self.kind = kind
        self.model = MODELS[kind.name]

    @property
    def id_column(self):
        return getattr(self.model, self.model.__id_field__)

    def transaction(self):
        return guarded_transaction(self.db)

    # reads

    def find_by_base_code(self, code: str) -> List:
        with guarded_read(self.db):
            return (
                self.db.query(self.model)
                .filter(self.model.code == code.upper())
                .order_by(self.model.version.asc())
                .all()
            )

    def find_by_id(self, entity_id: int):
        with guarded_read(self.db):
            return self.db.query(self.model).filter(self.id_column == entity_id).first()

    def lineage_of(self, entity) -> List:
        rows = self.find_by_base_code(entity.code)
        validate_lineage(rows)
        return rows

    def latest_version(self, code: str):
        return latest_of(self.find_by_base_code(code))

    def newer_versions(self, entity) -> List:
        return newer_than(self.find_by_base_code(entity.code), entity.version)

    # writes

    def _guarded_update(self, entity_id: int, expected: Dict[str, Any], values: Dict[str, Any]) -> None:
        query = self.db.query(self.model).filter(self.id_column == entity_id)
        for column, value in expected.items():
            query = query.filter(getattr(self.model, column) == value)
        if query.update(values, synchronize_session="fetch") == 0:
            raise StaleState(
                f"{self.kind.label} {entity_id} no longer matches the expected state; reload and retry.",
                entity_id=entity_id,
                expected=expected,
            )

    def atomic_update(self, writes: Sequence[RowWrite]) -> List:
        """Apply every write or none of them; returns the touched rows in order."""
        rows = []
        for write in writes:
            if write.entity_id is None:
                row = self.model(**write.fields)
                self.db.add(row)
                self.db.flush()
            else:
                self._guarded_update(write.entity_id, write.expected, write.fields)
                row = self.find_by_id(write.entity_id)
            rows.append(row)
        return rows

    def compare_and_swap_status(self, entity_id: int, expected_status: str, new_status: str, fields: Dict[str, Any] = None):
        values = dict(fields or {})
        values["status"] = new_status
        self._guarded_update(entity_id, {"status": expected_status}, values)
        return self.find_by_id(entity_id)

    def delete_if_status(self, entity_id: int, expected_status: str) -> None:
        deleted = (
            self.db.query(self.model)
            .filter(self.id_column == entity_id, self.model.status == expected_status)
            .delete(synchronize_session="fetch")
        )
        if deleted == 0:
            raise StaleState(
                f"{self.kind.label} {entity_id} is no longer {expected_status}; reload and retry.",
                entity_id=entity_id,
            )


def column_values(row) -> Dict[str, Any]:
    """Raw column values of ``row`` keyed by attribute name; lists are copied."""
    values = {}
    for attr in inspect(row).mapper.column_attrs:
        value = getattr(row, attr.key)
        values[attr.key] = list(value) if isinstance(value, list) else value
    return values
