from datetime import date, datetime
from decimal import Decimal

import pytest
from conftest import OTHER_OWNER_ID, OWNER_ID

from dosewise.domain.appointments.service import AppointmentService
from dosewise.domain.history.service import HistoryService, month_bounds
from dosewise.domain.treatments.service import TreatmentService
from dosewise.exceptions import NotFoundError, ValidationError
from dosewise.models import (
    MEDICATION_REMOVED_LABEL,
    NO_MEDICATION_LABEL,
    TREATMENT_REMOVED_LABEL,
    Medication,
    MedicationHistory,
    RecordStatus,
)


@pytest.fixture
def taken(db, make_treatment):
    """Two completed doses of the default treatment, returned oldest first"""
    treatment = make_treatment()
    service = AppointmentService(db)
    first, second = treatment.appointments[0], treatment.appointments[1]
    return [
        service.complete(first.id, OWNER_ID, used_at=datetime(2024, 1, 1, 8, 5)),
        service.complete(second.id, OWNER_ID, dose_taken="250", note="half dose"),
    ]


def test_list_by_owner_is_most_recent_first(db, taken):
    records = HistoryService(db).list_by_owner(OWNER_ID)
    assert [r.used_at for r in records] == [datetime(2024, 1, 1, 16, 0), datetime(2024, 1, 1, 8, 5)]
    assert HistoryService(db).list_by_owner(OTHER_OWNER_ID) == []


def test_records_carry_treatment_and_medication_labels(db, taken):
    record = HistoryService(db).get(taken[0].id, OWNER_ID)
    assert record.treatment_name == "Antibiotic course"
    assert record.medication_name == "Amoxicillin"
    assert record.treatment_id is not None


def test_list_by_period_is_inclusive(db, taken):
    service = HistoryService(db)
    records = service.list_by_owner_and_period(
        OWNER_ID, datetime(2024, 1, 1, 8, 5), datetime(2024, 1, 1, 12, 0)
    )
    assert [r.id for r in records] == [taken[0].id]

    with pytest.raises(ValidationError):
        service.list_by_owner_and_period(OWNER_ID, datetime(2024, 1, 2), datetime(2024, 1, 1))


def test_update_changes_only_given_fields(db, taken):
    service = HistoryService(db)
    updated = service.update(taken[1].id, OWNER_ID, note="corrected")

    assert updated.note == "corrected"
    assert updated.dose_taken == Decimal("250")

    updated = service.update(taken[1].id, OWNER_ID, dose_taken="125.5", used_at=datetime(2024, 1, 1, 17, 0))
    assert updated.dose_taken == Decimal("125.50")
    assert updated.used_at == datetime(2024, 1, 1, 17, 0)

    with pytest.raises(ValidationError):
        service.update(taken[1].id, OWNER_ID, dose_taken="-1")
    with pytest.raises(NotFoundError):
        service.update(taken[1].id, OTHER_OWNER_ID, note="not mine")


def test_logical_delete_keeps_the_row(db, taken):
    service = HistoryService(db)
    deleted = service.logical_delete(taken[0].id, OWNER_ID)

    assert deleted.status == RecordStatus.INACTIVE.value
    assert db.query(MedicationHistory).count() == 2
    assert [r.id for r in service.list_by_owner(OWNER_ID)] == [taken[1].id]
    with pytest.raises(NotFoundError, match="inactive"):
        service.get(taken[0].id, OWNER_ID)
    with pytest.raises(NotFoundError):
        service.update(taken[0].id, OWNER_ID, note="gone")


def test_log_dose_leaves_appointment_pending(db, make_treatment):
    treatment = make_treatment()
    appointment = treatment.appointments[2]

    record = HistoryService(db).log_dose(OWNER_ID, appointment.id, "500", datetime(2024, 1, 2, 7, 0))

    db.refresh(appointment)
    assert appointment.status == "PENDING"
    assert record.appointment_id == appointment.id

    with pytest.raises(NotFoundError):
        HistoryService(db).log_dose(OTHER_OWNER_ID, appointment.id, "500", datetime(2024, 1, 2, 7, 0))


def test_removed_treatment_chain_degrades_to_labels(db, make_treatment):
    treatment = make_treatment()
    appointment = treatment.appointments[3]
    record = HistoryService(db).log_dose(OWNER_ID, appointment.id, "500", datetime(2024, 1, 2, 16, 0))

    # Cancelling physically removes the pending appointment the record points at
    TreatmentService(db).cancel_treatment(treatment.id, OWNER_ID)

    reloaded = HistoryService(db).get(record.id, OWNER_ID)
    assert reloaded.appointment_id is None
    assert reloaded.treatment_id is None
    assert reloaded.treatment_name == TREATMENT_REMOVED_LABEL
    assert reloaded.medication_name == NO_MEDICATION_LABEL


def test_removed_medication_degrades_to_label(db, taken):
    medication = db.query(Medication).one()
    db.delete(medication)
    db.commit()

    record = HistoryService(db).get(taken[0].id, OWNER_ID)
    assert record.treatment_name == "Antibiotic course"
    assert record.medication_name == MEDICATION_REMOVED_LABEL


def test_period_report_totals(db, taken):
    report = HistoryService(db).period_report(OWNER_ID, *month_bounds(2024, 1))

    assert report.total_doses == 2
    (total,) = report.by_medication
    assert total.medication_name == "Amoxicillin"
    assert total.doses == 2
    assert total.total_dose == Decimal("750")
    assert [e.id for e in report.entries] == [taken[1].id, taken[0].id]

    empty = HistoryService(db).period_report(OWNER_ID, *month_bounds(2024, 2))
    assert empty.total_doses == 0
    assert empty.by_medication == []


def test_month_bounds():
    start, end = month_bounds(2024, 2)
    assert start == datetime(2024, 2, 1, 0, 0)
    assert end.date() == date(2024, 2, 29)
    assert (end.hour, end.minute, end.second) == (23, 59, 59)

    with pytest.raises(ValidationError):
        month_bounds(2024, 13)
