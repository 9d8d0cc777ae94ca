"""
Treatment service - Lifecycle of a dosing plan

Status workflow: ACTIVE -> COMPLETED (automatic, once nothing is pending)
                        -> CANCELLED (explicit)
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import unit_of_work
from ...exceptions import InvalidStateError, NotFoundError
from ...models import AlertType, AppointmentStatus, FrequencyType, Treatment, TreatmentStatus
from ...shared.validators import validate_date_range, validate_dose
from ..appointments.service import AppointmentService
from ..medications.repository import MedicationRepository
from ..scheduling.frequency import SpecificTimesRule, build_rule, expand
from .repository import TreatmentRepository
from .schemas import TreatmentCreate, TreatmentUpdate

logger = logging.getLogger(__name__)


class TreatmentService:
    """Service layer for treatment business logic"""

    def __init__(self, db: Session, appointment_service: Optional[AppointmentService] = None):
        self.db = db
        self.repo = TreatmentRepository()
        self.medication_repo = MedicationRepository()
        self.appointments = appointment_service or AppointmentService(db, treatment_service=self)

    def list_treatments(self, owner_id: int, status=None) -> list[Treatment]:
        wanted = TreatmentStatus.from_code(status) if status is not None else None
        return self.repo.get_treatments(self.db, owner_id, wanted)

    def get_treatment(self, treatment_id: int, owner_id: int) -> Treatment:
        treatment = self.repo.get_treatment_by_id(self.db, treatment_id, owner_id)
        if not treatment:
            raise NotFoundError("Treatment not found")
        return treatment

    @staticmethod
    def pending_count(treatment: Treatment) -> int:
        return sum(1 for a in treatment.appointments if a.status == AppointmentStatus.PENDING.value)

    def _get_active_medication(self, medication_id: int, owner_id: int):
        medication = self.medication_repo.get_medication_by_id(self.db, medication_id, owner_id)
        if not medication:
            raise NotFoundError("Medication not found")
        return medication

    def create_treatment(self, owner_id: int, data: TreatmentCreate) -> Treatment:
        """
        Persist a treatment and one PENDING appointment per expanded timestamp.

        Every check runs before the first write, so a failure leaves nothing behind.
        """
        logger.info(f"Creating treatment for owner {owner_id}, medication {data.medicationId}")

        with unit_of_work(self.db):
            medication = self._get_active_medication(data.medicationId, owner_id)
            validate_date_range(data.startDate, data.endDate)
            rule = build_rule(data.frequencyType, data.intervalHours, data.specificTimes)
            dose = validate_dose(data.doseAmount)
            alert = AlertType.from_code(data.alertType)

            treatment = self.repo.add_treatment(
                self.db,
                owner_id,
                medication_id=medication.id,
                name=data.name,
                dose_amount=dose,
                notes=data.notes,
                start_date=data.startDate,
                end_date=data.endDate,
                frequency_type=FrequencyType.from_code(data.frequencyType).value,
                interval_hours=data.intervalHours,
                specific_times=rule.as_text() if isinstance(rule, SpecificTimesRule) else None,
                alert_type=alert.value,
                status=TreatmentStatus.ACTIVE.value,
            )

            for scheduled_at in expand(data.startDate, data.endDate, rule):
                self.appointments.create(treatment, scheduled_at, alert, owner_id)

        logger.info(
            f"Treatment {treatment.id} created with {len(treatment.appointments)} appointments"
        )
        return treatment

    def update_treatment(self, treatment_id: int, owner_id: int, data: TreatmentUpdate) -> Treatment:
        """
        Apply the fields present in ``data``.

        A schedule change (rule or dates) removes every PENDING appointment and
        regenerates the rest of the plan; TAKEN and CANCELLED ones stay as they are.
        """
        with unit_of_work(self.db):
            treatment = self.get_treatment(treatment_id, owner_id)
            if treatment.status != TreatmentStatus.ACTIVE.value:
                raise InvalidStateError(
                    f"Only active treatments can be updated (current status: {treatment.status})"
                )

            # Validate everything first
            medication = (
                self._get_active_medication(data.medicationId, owner_id)
                if data.medicationId is not None
                else None
            )
            dose = validate_dose(data.doseAmount) if data.doseAmount is not None else None
            alert = AlertType.from_code(data.alertType) if data.alertType is not None else None

            rescheduling = data.changes_schedule()
            if rescheduling:
                start_date = data.startDate or treatment.start_date
                end_date = data.endDate or treatment.end_date
                validate_date_range(start_date, end_date)
                frequency_type, interval_hours, specific_times = self._merge_rule_fields(treatment, data)
                rule = build_rule(frequency_type, interval_hours, specific_times)

            if medication is not None:
                treatment.medication_id = medication.id
            if data.name is not None:
                treatment.name = data.name.strip()
            if dose is not None:
                treatment.dose_amount = dose
            if data.notes is not None:
                treatment.notes = data.notes
            if alert is not None:
                treatment.alert_type = alert.value
                for appointment in treatment.appointments:
                    if appointment.status == AppointmentStatus.PENDING.value:
                        appointment.alert_type = alert.value

            if rescheduling:
                treatment.start_date = start_date
                treatment.end_date = end_date
                treatment.frequency_type = frequency_type.value
                treatment.interval_hours = interval_hours
                treatment.specific_times = (
                    rule.as_text() if isinstance(rule, SpecificTimesRule) else None
                )
                self._regenerate_appointments(treatment, rule, owner_id)

            self.repo.save_treatment(self.db, treatment)

            if rescheduling and self.pending_count(treatment) == 0:
                self.check_and_complete(treatment.id, owner_id)

        return treatment

    @staticmethod
    def _merge_rule_fields(treatment: Treatment, data: TreatmentUpdate):
        """Combine stored and requested rule fields; a type switch drops the old variant"""
        current_type = FrequencyType.from_code(treatment.frequency_type)
        new_type = (
            FrequencyType.from_code(data.frequencyType)
            if data.frequencyType is not None
            else current_type
        )

        if new_type != current_type:
            return new_type, data.intervalHours, data.specificTimes

        return (
            new_type,
            data.intervalHours if data.intervalHours is not None else treatment.interval_hours,
            data.specificTimes if data.specificTimes is not None else treatment.specific_times,
        )

    def _regenerate_appointments(self, treatment: Treatment, rule, owner_id: int) -> None:
        removed = self.repo.remove_pending_appointments(self.db, treatment)

        # Only doses after the last one taken are regenerated; a cancelled dose
        # just keeps its own slot
        taken = [
            a.scheduled_at for a in treatment.appointments if a.status == AppointmentStatus.TAKEN.value
        ]
        cutoff = max(taken) if taken else None
        settled = {a.scheduled_at for a in treatment.appointments}

        created = 0
        for scheduled_at in expand(treatment.start_date, treatment.end_date, rule):
            if cutoff is not None and scheduled_at <= cutoff:
                continue
            if scheduled_at in settled:
                continue
            self.appointments.create(treatment, scheduled_at, treatment.alert_type, owner_id)
            created += 1

        logger.info(
            f"Treatment {treatment.id} rescheduled: {removed} pending removed, {created} generated"
        )

    def cancel_treatment(self, treatment_id: int, owner_id: int) -> Treatment:
        """
        Remove all PENDING appointments and mark the treatment CANCELLED.
        TAKEN and CANCELLED appointments are kept untouched.
        """
        with unit_of_work(self.db):
            treatment = self.get_treatment(treatment_id, owner_id)

            if treatment.status == TreatmentStatus.CANCELLED.value:
                return treatment
            if treatment.status == TreatmentStatus.COMPLETED.value:
                raise InvalidStateError("A completed treatment cannot be cancelled")

            removed = self.repo.remove_pending_appointments(self.db, treatment)
            treatment.status = TreatmentStatus.CANCELLED.value
            self.repo.save_treatment(self.db, treatment)

        logger.info(
            f"Treatment {treatment_id} cancelled by owner {owner_id}, {removed} pending appointments removed"
        )
        return treatment

    def check_and_complete(self, treatment_id: int, owner_id: int) -> Treatment:
        """Flip an ACTIVE treatment to COMPLETED once nothing is pending; otherwise write nothing"""
        with unit_of_work(self.db):
            treatment = self.get_treatment(treatment_id, owner_id)
            pending = self.repo.count_appointments(self.db, treatment.id, AppointmentStatus.PENDING)

            if pending == 0 and treatment.status == TreatmentStatus.ACTIVE.value:
                treatment.status = TreatmentStatus.COMPLETED.value
                self.repo.save_treatment(self.db, treatment)
                logger.info(f"Treatment {treatment_id} completed")
            else:
                logger.debug(f"Treatment {treatment_id} still has {pending} pending appointments")

        return treatment
