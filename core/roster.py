"""
Bounded membership sets (course enrollment, event registration).

A roster is an owner row carrying a member counter and a capacity column, plus
a membership table with a unique (owner, user) constraint. Seats are claimed
with a conditional UPDATE so the capacity check and the increment are one
statement per owner row; concurrent joins either get a seat or fail with a
conflict, never overshoot.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, List

from sqlalchemy import update, delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, InvalidStateError
from core.logger import logger

Check = Callable[[object], None]


@dataclass(frozen=True)
class RosterLabels:
    """Messages used when a join/leave is rejected."""
    already_member: str
    full: str
    not_member: str


class BoundedRoster:
    """Capacity-limited, duplicate-free membership attached to an owner model."""

    def __init__(self, owner_model, member_model, owner_key: str, count_attr: str,
                 capacity_attr: str, labels: RosterLabels):
        self.owner_model = owner_model
        self.member_model = member_model
        self.owner_key = owner_key
        self.count_attr = count_attr
        self.capacity_attr = capacity_attr
        self.labels = labels

    def _owner_column(self):
        return getattr(self.member_model, self.owner_key)

    def is_member(self, db: Session, owner_id: int, user_id: int) -> bool:
        stmt = select(self.member_model.id).where(
            self._owner_column() == owner_id,
            self.member_model.user_id == user_id,
        )
        return db.execute(stmt).first() is not None

    def member_ids(self, db: Session, owner_id: int) -> List[int]:
        stmt = (
            select(self.member_model.user_id)
            .where(self._owner_column() == owner_id)
            .order_by(self.member_model.id)
        )
        return list(db.execute(stmt).scalars())

    def _claim_seat(self, db: Session, owner_id: int) -> bool:
        count = getattr(self.owner_model, self.count_attr)
        capacity = getattr(self.owner_model, self.capacity_attr)
        stmt = (
            update(self.owner_model)
            .where(self.owner_model.id == owner_id, count < capacity)
            .values({self.count_attr: count + 1})
            .execution_options(synchronize_session=False)
        )
        return db.execute(stmt).rowcount == 1

    def _release_seat(self, db: Session, owner_id: int) -> None:
        count = getattr(self.owner_model, self.count_attr)
        stmt = (
            update(self.owner_model)
            .where(self.owner_model.id == owner_id, count > 0)
            .values({self.count_attr: count - 1})
            .execution_options(synchronize_session=False)
        )
        db.execute(stmt)

    def resize(self, db: Session, owner_id: int, capacity: int) -> bool:
        """
        Set a new capacity unless the current member count exceeds it.

        Compared against the stored count, so a join committed by another
        request since the owner was read is taken into account. The caller
        commits or rolls back.
        """
        count = getattr(self.owner_model, self.count_attr)
        stmt = (
            update(self.owner_model)
            .where(self.owner_model.id == owner_id, count <= capacity)
            .values({self.capacity_attr: capacity})
            .execution_options(synchronize_session=False)
        )
        return db.execute(stmt).rowcount == 1

    def join(self, db: Session, owner, user_id: int,
             gates: Iterable[Check] = (), eligibility: Iterable[Check] = (),
             **member_fields):
        """
        Add `user_id` to the owner's roster and commit.

        Checks run in order and the first failure wins: gates, existing
        membership, capacity, eligibility. The capacity and membership checks
        are re-asserted by the conditional UPDATE and the unique constraint.
        """
        for gate in gates:
            gate(owner)

        if self.is_member(db, owner.id, user_id):
            raise ConflictError(self.labels.already_member)

        if getattr(owner, self.count_attr) >= getattr(owner, self.capacity_attr):
            raise ConflictError(self.labels.full)

        for check in eligibility:
            check(owner)

        if not self._claim_seat(db, owner.id):
            db.rollback()
            logger.warning(f"{self.owner_model.__name__} {owner.id}: seat claim lost, roster full")
            raise ConflictError(self.labels.full)

        member = self.member_model(user_id=user_id, **{self.owner_key: owner.id}, **member_fields)
        db.add(member)
        try:
            db.flush()
        except IntegrityError:
            # A concurrent join for the same user committed first; undo the seat claim too
            db.rollback()
            raise ConflictError(self.labels.already_member)

        db.commit()
        db.refresh(owner)
        return member

    def leave(self, db: Session, owner, user_id: int) -> None:
        """Remove `user_id` from the owner's roster and commit."""
        stmt = delete(self.member_model).where(
            self._owner_column() == owner.id,
            self.member_model.user_id == user_id,
        ).execution_options(synchronize_session=False)
        if db.execute(stmt).rowcount == 0:
            db.rollback()
            raise InvalidStateError(self.labels.not_member)

        self._release_seat(db, owner.id)
        db.commit()
        db.refresh(owner)
