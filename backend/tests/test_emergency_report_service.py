from datetime import date

import pytest

from backend.services.emergency_report_service import EmergencyReportService
from backend.services.errors import NotFoundError, ValidationError


@pytest.fixture
def driver(make_driver):
    return make_driver(name="Dana Levi")


def test_create_maps_form_fields(driver, make_car):
    car = make_car()
    report = EmergencyReportService.create(driver.id, {
        'car_id': car.id,
        'type': 'theft',
        'incidentDate': '2024-01-15',
        'identifierName': 'Dana Levi',
        'employeeInvolved': 'Omer Katz',
    })
    assert report.driver_id == driver.id
    assert report.car_id == car.id
    assert report.type == 'theft'
    assert report.incident_date == '2024-01-15'
    assert report.identifier_name == 'Dana Levi'
    assert report.employee_involved == 'Omer Katz'
    assert report.meta is None


def test_create_rejects_bad_field_type(driver):
    with pytest.raises(ValidationError):
        EmergencyReportService.create(driver.id, {'car_id': 'not-a-car'})


def test_list_filters_by_type_and_incident_date(driver):
    EmergencyReportService.create(driver.id, {'type': 'accident', 'incidentDate': '2024-01-15'})
    EmergencyReportService.create(driver.id, {'type': 'accident', 'incidentDate': '2024-01-16'})
    EmergencyReportService.create(driver.id, {'type': 'injury', 'incidentDate': '2024-01-15'})

    reports, pagination = EmergencyReportService.list('accident')
    assert pagination['total'] == 2

    reports, _ = EmergencyReportService.list('all', date(2024, 1, 15))
    assert sorted(r.type for r in reports) == ['accident', 'injury']

    reports, _ = EmergencyReportService.list('accident', date(2024, 1, 16))
    assert [r.incident_date for r in reports] == ['2024-01-16']


def test_get_missing(db):
    with pytest.raises(NotFoundError):
        EmergencyReportService.get_by_id(4242)
