# Overview: Sales slot scheduling; alignment, overlap rejection and current/next resolution.

"""
Slot Scheduler

RULES:
- A slot is the half-open interval [start_time, end_time), end > start.
- Both bounds sit on an alignment boundary (30 minutes by default): the
  minute is a multiple of the alignment and seconds/microseconds are zero.
- No two slots overlap, active or not. Adjacent slots ([10:00,10:30) and
  [10:30,11:00)) do not overlap.
- A slot whose end has passed cannot be activated.
- A slot with reserved or sold stock cannot be deleted.

All datetimes are UTC-naive; aware inputs are converted first. "Now" comes from
the injected clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from ..models import SalesSlot
from ..results import ErrorKind, Ok, err
from ..time_utils import to_utc_naive, to_utc_z, utcnow
from .concurrency import begin_write, run_with_retry


SLOT_WRITABLE_FIELDS = {"start_time", "end_time", "is_active"}


class SlotScheduler:
    def __init__(
        self,
        session,
        slots,
        inventory,
        *,
        clock=utcnow,
        alignment_minutes: int = 30,
        lookahead_minutes: int = 30,
        retry_attempts: int = 3,
    ):
        self.session = session
        self.slots = slots
        self.inventory = inventory
        self.clock = clock
        self.alignment_minutes = alignment_minutes
        self.lookahead = timedelta(minutes=lookahead_minutes)
        self.retry_attempts = retry_attempts

    def _not_found(self, slot_id: int):
        return err(ErrorKind.SLOT_NOT_FOUND, f"Sales slot with ID {slot_id} not found", sales_slot_id=slot_id)

    def _is_aligned(self, value: datetime) -> bool:
        return (
            value.minute % self.alignment_minutes == 0
            and value.second == 0
            and value.microsecond == 0
        )

    def _validate_time_slot(self, start: datetime, end: datetime, *, exclude_id: int | None = None):
        if end <= start:
            return err(
                ErrorKind.INVALID_TIME_RANGE,
                "End time must be after start time",
                start_time=to_utc_z(start),
                end_time=to_utc_z(end),
            )

        if not (self._is_aligned(start) and self._is_aligned(end)):
            return err(
                ErrorKind.UNALIGNED_TIME_SLOT,
                f"Time slots must be aligned to {self.alignment_minutes}-minute intervals",
                start_time=to_utc_z(start),
                end_time=to_utc_z(end),
            )

        conflicts = self.slots.find_overlapping(start, end, exclude_id=exclude_id)
        if conflicts:
            return err(
                ErrorKind.OVERLAPPING_SLOT,
                "Time slot overlaps with existing slots: "
                + ", ".join(f"{to_utc_z(s.start_time)} - {to_utc_z(s.end_time)}" for s in conflicts),
                conflicting_slot_ids=[s.id for s in conflicts],
            )
        return None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_slot(self, start_time: datetime, end_time: datetime, is_active: bool = False):
        start = to_utc_naive(start_time)
        end = to_utc_naive(end_time)

        def _op():
            begin_write(self.session)
            problem = self._validate_time_slot(start, end)
            if problem is not None:
                self.session.rollback()
                return problem

            slot = self.slots.add(SalesSlot(start_time=start, end_time=end, is_active=bool(is_active)))
            self.session.commit()
            return Ok(slot)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def update_slot(self, slot_id: int, changes: dict):
        """
        Apply a partial update. Time changes are re-validated against every
        other slot; the slot's own previous interval never counts as a conflict.
        Keys outside SLOT_WRITABLE_FIELDS are ignored.
        """
        changes = {k: v for k, v in changes.items() if k in SLOT_WRITABLE_FIELDS}

        def _op():
            begin_write(self.session)
            slot = self.slots.get(slot_id)
            if slot is None:
                self.session.rollback()
                return self._not_found(slot_id)

            if "start_time" in changes or "end_time" in changes:
                start = to_utc_naive(changes.get("start_time") or slot.start_time)
                end = to_utc_naive(changes.get("end_time") or slot.end_time)
                problem = self._validate_time_slot(start, end, exclude_id=slot.id)
                if problem is not None:
                    self.session.rollback()
                    return problem
                slot.start_time = start
                slot.end_time = end

            if "is_active" in changes:
                if changes["is_active"] and slot.end_time <= self.clock():
                    self.session.rollback()
                    return err(
                        ErrorKind.PAST_TIME_SLOT,
                        "Cannot activate past time slot",
                        sales_slot_id=slot_id,
                        end_time=to_utc_z(slot.end_time),
                    )
                slot.is_active = bool(changes["is_active"])

            self.session.commit()
            return Ok(slot)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def delete_slot(self, slot_id: int):
        """Delete a slot and its zero-count inventory rows."""
        def _op():
            begin_write(self.session)
            slot = self.slots.get(slot_id)
            if slot is None:
                self.session.rollback()
                return self._not_found(slot_id)

            if self.inventory.has_active_rows(sales_slot_id=slot_id):
                self.session.rollback()
                return err(
                    ErrorKind.SLOT_HAS_ACTIVE_INVENTORY,
                    "Cannot delete sales slot with active inventory",
                    sales_slot_id=slot_id,
                )

            self.inventory.delete_rows(self.inventory.list_by_slot(slot_id))
            self.slots.delete(slot)
            self.session.commit()
            return Ok(True)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    def toggle_active(self, slot_id: int, is_active: bool):
        def _op():
            begin_write(self.session)
            slot = self.slots.get(slot_id)
            if slot is None:
                self.session.rollback()
                return self._not_found(slot_id)

            if is_active and slot.end_time <= self.clock():
                self.session.rollback()
                return err(
                    ErrorKind.PAST_TIME_SLOT,
                    "Cannot activate past time slot",
                    sales_slot_id=slot_id,
                    end_time=to_utc_z(slot.end_time),
                )

            slot.is_active = bool(is_active)
            self.session.commit()
            return Ok(slot)

        return run_with_retry(self.session, _op, attempts=self.retry_attempts)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_slot(self, slot_id: int):
        slot = self.slots.get(slot_id)
        if slot is None:
            return self._not_found(slot_id)
        return Ok(slot)

    def list_slots(self, *, active_only: bool = False) -> list[SalesSlot]:
        return self.slots.find_all(active_only=active_only)

    def slots_in_range(self, start_time: datetime, end_time: datetime):
        start = to_utc_naive(start_time)
        end = to_utc_naive(end_time)
        if end <= start:
            return err(ErrorKind.INVALID_TIME_RANGE, "End time must be after start time")
        return Ok(self.slots.find_overlapping(start, end))

    def current_slot(self) -> SalesSlot | None:
        """The active slot with start <= now < end, if any."""
        now = self.clock()
        for slot in self.slots.find_containing(now):
            if slot.is_active:
                return slot
        return None

    def next_slot(self) -> SalesSlot | None:
        """The earliest active slot starting after now, within the look-ahead window."""
        now = self.clock()
        upcoming = self.slots.find_starting_between(now, now + self.lookahead, active_only=True)
        return upcoming[0] if upcoming else None
