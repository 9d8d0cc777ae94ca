"""History service - Append-only log of doses actually taken"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import NotFoundError, ValidationError
from ...models import Appointment, MedicationHistory, RecordStatus
from ...shared.validators import validate_dose, validate_period
from ..appointments.repository import AppointmentRepository
from .repository import HistoryRepository

logger = logging.getLogger(__name__)


@dataclass
class MedicationTotal:
    medication_name: str
    doses: int = 0
    total_dose: Decimal = Decimal("0")


@dataclass
class PeriodReport:
    start: datetime
    end: datetime
    entries: list[MedicationHistory] = field(default_factory=list)
    by_medication: list[MedicationTotal] = field(default_factory=list)

    @property
    def total_doses(self) -> int:
        return len(self.entries)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """First and last instant of a calendar month"""
    if not 1 <= month <= 12:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    last_day = calendar.monthrange(year, month)[1]
    return (
        datetime.combine(date(year, month, 1), time.min),
        datetime.combine(date(year, month, last_day), time.max),
    )


class HistoryService:
    """Service layer for medication history"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = HistoryRepository()
        self.appointment_repo = AppointmentRepository()

    def record(
        self,
        appointment: Appointment,
        dose_taken,
        used_at: datetime,
        note: Optional[str],
        owner_id: int,
    ) -> MedicationHistory:
        """Write the history entry for a dose. Callers own the transaction."""
        with unit_of_work(self.db):
            record = self.repo.add_history(
                self.db,
                owner_id,
                appointment=appointment,
                used_at=used_at,
                dose_taken=validate_dose(dose_taken),
                note=note,
                status=RecordStatus.ACTIVE.value,
            )
        logger.info(
            f"History {record.id} recorded for appointment {appointment.id} (owner {owner_id})"
        )
        return record

    def log_dose(
        self,
        owner_id: int,
        appointment_id: int,
        dose_taken,
        used_at: datetime,
        note: Optional[str] = None,
    ) -> MedicationHistory:
        """Ad-hoc entry against an existing appointment; its status is not changed"""
        with unit_of_work(self.db):
            appointment = self.appointment_repo.get_appointment_by_id(self.db, appointment_id, owner_id)
            if not appointment:
                raise NotFoundError("Appointment not found")
            return self.record(appointment, dose_taken, used_at, note, owner_id)

    def get(self, history_id: int, owner_id: int) -> MedicationHistory:
        record = self.repo.get_history_by_id(self.db, history_id, owner_id)
        if not record:
            raise NotFoundError("History record not found or inactive")
        return record

    def update(
        self,
        history_id: int,
        owner_id: int,
        used_at: Optional[datetime] = None,
        dose_taken=None,
        note: Optional[str] = None,
    ) -> MedicationHistory:
        with unit_of_work(self.db):
            record = self.get(history_id, owner_id)
            updates = {
                "used_at": used_at,
                "dose_taken": validate_dose(dose_taken) if dose_taken is not None else None,
                "note": note,
            }
            record = self.repo.update_history(self.db, record, **updates)
        return record

    def logical_delete(self, history_id: int, owner_id: int) -> MedicationHistory:
        with unit_of_work(self.db):
            record = self.repo.get_history_by_id(self.db, history_id, owner_id, active_only=False)
            if not record:
                raise NotFoundError("History record not found")
            record.status = RecordStatus.INACTIVE.value
            self.db.flush()
        logger.info(f"History {history_id} deactivated for owner {owner_id}")
        return record

    def list_by_owner(self, owner_id: int) -> list[MedicationHistory]:
        return self.repo.get_history(self.db, owner_id)

    def list_by_owner_and_period(
        self, owner_id: int, start: datetime, end: datetime
    ) -> list[MedicationHistory]:
        """Active records with start <= used_at <= end, most recent first"""
        validate_period(start, end)
        return self.repo.get_history(self.db, owner_id, start, end)

    def period_report(self, owner_id: int, start: datetime, end: datetime) -> PeriodReport:
        entries = self.list_by_owner_and_period(owner_id, start, end)

        totals: dict[str, MedicationTotal] = {}
        for entry in entries:
            total = totals.setdefault(entry.medication_name, MedicationTotal(entry.medication_name))
            total.doses += 1
            total.total_dose += Decimal(entry.dose_taken)

        return PeriodReport(
            start=start,
            end=end,
            entries=entries,
            by_medication=sorted(totals.values(), key=lambda t: t.medication_name),
        )
