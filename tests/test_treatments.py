from datetime import date, datetime
from decimal import Decimal

import pytest
from conftest import OTHER_OWNER_ID, OWNER_ID
from pydantic import ValidationError as SchemaValidationError

from dosewise.domain.appointments.service import AppointmentService
from dosewise.domain.medications.schemas import MedicationCreate
from dosewise.domain.medications.service import MedicationService
from dosewise.domain.scheduling import expand, rule_for
from dosewise.domain.treatments.schemas import TreatmentCreate, TreatmentUpdate
from dosewise.domain.treatments.service import TreatmentService
from dosewise.exceptions import InvalidStateError, NotFoundError, ValidationError
from dosewise.models import Appointment, AppointmentStatus, MedicationHistory, Treatment, TreatmentStatus


def _statuses(treatment):
    return [a.status for a in treatment.appointments]


def test_create_generates_pending_appointments_in_order(make_treatment):
    treatment = make_treatment(frequencyType=2, intervalHours=None, specificTimes="9:00,21:00")

    assert treatment.status == TreatmentStatus.ACTIVE.value
    assert treatment.specific_times == "09:00, 21:00"
    assert [a.scheduled_at for a in treatment.appointments] == [
        datetime(2024, 1, 1, 9, 0),
        datetime(2024, 1, 1, 21, 0),
        datetime(2024, 1, 2, 9, 0),
        datetime(2024, 1, 2, 21, 0),
    ]
    assert set(_statuses(treatment)) == {AppointmentStatus.PENDING.value}


def test_create_requires_owned_active_medication(db, medication):
    payload = TreatmentCreate(
        medicationId=medication.id,
        name="Course",
        doseAmount="1",
        startDate=date(2024, 1, 1),
        endDate=date(2024, 1, 1),
        frequencyType=1,
        intervalHours=6,
    )
    with pytest.raises(NotFoundError):
        TreatmentService(db).create_treatment(OTHER_OWNER_ID, payload)

    MedicationService(db).delete_medication(medication.id, OWNER_ID)
    with pytest.raises(NotFoundError):
        TreatmentService(db).create_treatment(OWNER_ID, payload)


@pytest.mark.parametrize(
    "overrides",
    [
        {"endDate": date(2023, 12, 31)},
        {"intervalHours": 0},
        {"intervalHours": None},
        {"frequencyType": 2, "intervalHours": None, "specificTimes": "9am"},
        {"frequencyType": 7},
        {"doseAmount": "0"},
        {"alertType": 5},
    ],
)
def test_invalid_create_leaves_nothing_behind(db, make_treatment, overrides):
    with pytest.raises(ValidationError):
        make_treatment(**overrides)
    assert db.query(Treatment).count() == 0
    assert db.query(Appointment).count() == 0


def test_descriptive_update_does_not_regenerate(db, make_treatment):
    treatment = make_treatment()
    ids_before = [a.id for a in treatment.appointments]

    updated = TreatmentService(db).update_treatment(
        treatment.id, OWNER_ID, TreatmentUpdate(name="Renamed", doseAmount="250", notes="after meals")
    )

    assert updated.name == "Renamed"
    assert updated.dose_amount == Decimal("250")
    assert [a.id for a in updated.appointments] == ids_before


def test_alert_change_propagates_to_pending_only(db, make_treatment):
    treatment = make_treatment()
    first = treatment.appointments[0]
    AppointmentService(db).complete(first.id, OWNER_ID)

    updated = TreatmentService(db).update_treatment(treatment.id, OWNER_ID, TreatmentUpdate(alertType=2))

    assert updated.alert_type == "ALARM"
    by_status = {a.status: a.alert_type for a in updated.appointments}
    assert by_status[AppointmentStatus.TAKEN.value] == "PUSH_NOTIFICATION"
    assert by_status[AppointmentStatus.PENDING.value] == "ALARM"


def test_complex_update_replaces_pending_and_keeps_settled(db, make_treatment):
    treatment = make_treatment()
    appointments = AppointmentService(db)
    taken, cancelled = treatment.appointments[0], treatment.appointments[1]
    appointments.complete(taken.id, OWNER_ID)
    appointments.cancel(cancelled.id, OWNER_ID)

    updated = TreatmentService(db).update_treatment(
        treatment.id,
        OWNER_ID,
        TreatmentUpdate(frequencyType=2, specificTimes="10:00, 22:00", endDate=date(2024, 1, 3)),
    )

    assert updated.frequency_type == "SPECIFIC_TIMES"
    assert updated.interval_hours is None
    schedule = [(a.scheduled_at, a.status) for a in updated.appointments]
    assert schedule == [
        (datetime(2024, 1, 1, 8, 0), AppointmentStatus.TAKEN.value),
        (datetime(2024, 1, 1, 10, 0), AppointmentStatus.PENDING.value),
        (datetime(2024, 1, 1, 16, 0), AppointmentStatus.CANCELLED.value),
        (datetime(2024, 1, 1, 22, 0), AppointmentStatus.PENDING.value),
        (datetime(2024, 1, 2, 10, 0), AppointmentStatus.PENDING.value),
        (datetime(2024, 1, 2, 22, 0), AppointmentStatus.PENDING.value),
        (datetime(2024, 1, 3, 10, 0), AppointmentStatus.PENDING.value),
        (datetime(2024, 1, 3, 22, 0), AppointmentStatus.PENDING.value),
    ]
    assert db.query(MedicationHistory).count() == 1


def test_cancelled_last_dose_does_not_block_regeneration(db, make_treatment):
    treatment = make_treatment(endDate=date(2024, 1, 3))
    AppointmentService(db).cancel(treatment.appointments[-1].id, OWNER_ID)

    updated = TreatmentService(db).update_treatment(treatment.id, OWNER_ID, TreatmentUpdate(intervalHours=12))

    assert updated.status == TreatmentStatus.ACTIVE.value
    pending = [a.scheduled_at for a in updated.appointments if a.status == AppointmentStatus.PENDING.value]
    assert pending == [datetime(2024, 1, 1, 12, 0), datetime(2024, 1, 2, 12, 0), datetime(2024, 1, 3, 12, 0)]


def test_regeneration_skips_slot_of_cancelled_dose(db, make_treatment):
    treatment = make_treatment()
    AppointmentService(db).cancel(treatment.appointments[1].id, OWNER_ID)

    updated = TreatmentService(db).update_treatment(treatment.id, OWNER_ID, TreatmentUpdate(intervalHours=4))

    day_one_16 = [a.status for a in updated.appointments if a.scheduled_at == datetime(2024, 1, 1, 16, 0)]
    assert day_one_16 == [AppointmentStatus.CANCELLED.value]


def test_blank_name_update_is_rejected():
    with pytest.raises(SchemaValidationError):
        TreatmentUpdate(name="   ")
    assert TreatmentUpdate(name=" Renamed ").name == "Renamed"


def test_invalid_complex_update_changes_nothing(db, make_treatment):
    treatment = make_treatment()
    ids_before = [a.id for a in treatment.appointments]

    with pytest.raises(ValidationError):
        TreatmentService(db).update_treatment(
            treatment.id, OWNER_ID, TreatmentUpdate(name="Ignored", intervalHours=30)
        )

    db.expire_all()
    reloaded = TreatmentService(db).get_treatment(treatment.id, OWNER_ID)
    assert reloaded.name == "Antibiotic course"
    assert [a.id for a in reloaded.appointments] == ids_before


def test_update_of_cancelled_treatment_fails(db, make_treatment):
    treatment = make_treatment()
    service = TreatmentService(db)
    service.cancel_treatment(treatment.id, OWNER_ID)

    with pytest.raises(InvalidStateError):
        service.update_treatment(treatment.id, OWNER_ID, TreatmentUpdate(name="Too late"))


def test_cancel_removes_only_pending(db, make_treatment):
    treatment = make_treatment()
    appointments = AppointmentService(db)
    appointments.complete(treatment.appointments[0].id, OWNER_ID)
    appointments.cancel(treatment.appointments[1].id, OWNER_ID)

    cancelled = TreatmentService(db).cancel_treatment(treatment.id, OWNER_ID)

    assert cancelled.status == TreatmentStatus.CANCELLED.value
    assert sorted(_statuses(cancelled)) == [
        AppointmentStatus.CANCELLED.value,
        AppointmentStatus.TAKEN.value,
    ]
    assert db.query(Appointment).count() == 2


def test_cancel_is_idempotent_but_completed_cannot_be_cancelled(db, make_treatment):
    service = TreatmentService(db)
    treatment = make_treatment()
    service.cancel_treatment(treatment.id, OWNER_ID)
    assert service.cancel_treatment(treatment.id, OWNER_ID).status == TreatmentStatus.CANCELLED.value

    single = make_treatment(endDate=date(2024, 1, 1), intervalHours=12)
    AppointmentService(db).complete(single.appointments[0].id, OWNER_ID)
    with pytest.raises(InvalidStateError):
        service.cancel_treatment(single.id, OWNER_ID)


def test_check_and_complete_with_pending_changes_nothing(db, make_treatment):
    treatment = make_treatment()
    result = TreatmentService(db).check_and_complete(treatment.id, OWNER_ID)
    assert result.status == TreatmentStatus.ACTIVE.value
    assert not db.dirty


def test_check_and_complete_without_pending(db, make_treatment):
    treatment = make_treatment(endDate=date(2024, 1, 1), intervalHours=12)
    # Cancelling the last pending dose triggers the check as well
    AppointmentService(db).cancel(treatment.appointments[0].id, OWNER_ID)

    db.refresh(treatment)
    assert treatment.status == TreatmentStatus.COMPLETED.value
    assert TreatmentService(db).check_and_complete(treatment.id, OWNER_ID).status == "COMPLETED"


def test_cancel_then_recreate_yields_same_schedule(db, make_treatment):
    first = make_treatment(frequencyType=2, intervalHours=None, specificTimes="07:15, 19:45")
    first_schedule = [a.scheduled_at for a in first.appointments]
    TreatmentService(db).cancel_treatment(first.id, OWNER_ID)

    second = make_treatment(frequencyType=2, intervalHours=None, specificTimes="07:15, 19:45")

    assert [a.scheduled_at for a in second.appointments] == first_schedule
    assert first_schedule == expand(second.start_date, second.end_date, rule_for(second))


def test_list_filters_by_status_code(db, make_treatment):
    service = TreatmentService(db)
    active = make_treatment()
    cancelled = make_treatment()
    service.cancel_treatment(cancelled.id, OWNER_ID)

    assert [t.id for t in service.list_treatments(OWNER_ID, 1)] == [active.id]
    assert [t.id for t in service.list_treatments(OWNER_ID, "cancelled")] == [cancelled.id]
    assert len(service.list_treatments(OWNER_ID)) == 2
    assert service.list_treatments(OTHER_OWNER_ID) == []
    with pytest.raises(ValidationError):
        service.list_treatments(OWNER_ID, 4)


def test_other_owner_cannot_see_treatment(db, make_treatment):
    treatment = make_treatment()
    with pytest.raises(NotFoundError):
        TreatmentService(db).get_treatment(treatment.id, OTHER_OWNER_ID)


def test_medication_can_be_swapped(db, make_treatment):
    treatment = make_treatment()
    other = MedicationService(db).create_medication(MedicationCreate(name="Ibuprofen"), OWNER_ID)

    updated = TreatmentService(db).update_treatment(
        treatment.id, OWNER_ID, TreatmentUpdate(medicationId=other.id)
    )
    assert updated.medication.name == "Ibuprofen"


def test_pending_count_ignores_settled(db, make_treatment):
    treatment = make_treatment()
    AppointmentService(db).cancel(treatment.appointments[0].id, OWNER_ID)

    assert TreatmentService.pending_count(TreatmentService(db).get_treatment(treatment.id, OWNER_ID)) == 3
