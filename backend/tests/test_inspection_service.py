import pytest

from backend.services.errors import NotFoundError, ValidationError
from backend.services.inspection_service import InspectionService
from backend.services.report_status import CHECK_ITEMS

BASE = {'vehicleNumber': '12-345-67', 'driverSignature': 'sig'}


@pytest.fixture
def driver(make_driver):
    return make_driver(name="Dana Levi")


class TestCreate:
    def test_all_items_ok_is_good(self, driver):
        report = InspectionService.create(driver.id, {**BASE, **{key: True for key in CHECK_ITEMS}})
        assert report.meta['status'] == 'good'

    def test_explicit_false_is_bad(self, driver):
        report = InspectionService.create(driver.id, {**BASE, 'fridge': False})
        assert report.meta['status'] == 'bad'

    @pytest.mark.parametrize('value', [0, '0', 'no', 'false', 'off', ''])
    def test_falsy_values_are_stored_unchanged(self, driver, value):
        report = InspectionService.create(driver.id, {**BASE, 'engineOil': value})
        assert report.meta['engineOil'] == value
        assert report.meta['status'] == 'good'

    def test_paint_and_body_note_is_bad(self, driver):
        report = InspectionService.create(driver.id, {**BASE, 'paintAndBody': 'scratch on left door'})
        assert report.meta['status'] == 'bad'

    def test_client_status_is_ignored(self, driver):
        report = InspectionService.create(driver.id, {**BASE, 'cameras': False, 'status': 'good'})
        assert report.meta['status'] == 'bad'

    def test_signature_required(self, driver):
        with pytest.raises(ValidationError):
            InspectionService.create(driver.id, {'vehicleNumber': '12-345-67'})


class TestUpdate:
    def test_recomputes_status(self, driver):
        report = InspectionService.create(driver.id, {**BASE, 'engineOil': False})
        updated = InspectionService.update(report.id, {'engineOil': True})
        assert updated.meta['status'] == 'good'
        assert updated.meta['vehicleNumber'] == '12-345-67'

    def test_missing_report(self, db):
        with pytest.raises(NotFoundError):
            InspectionService.update(4242, {'engineOil': True})


def test_list_filters_on_status(driver):
    InspectionService.create(driver.id, {**BASE, 'engineOil': False})
    InspectionService.create(driver.id, dict(BASE))

    items, pagination = InspectionService.list(status='bad')
    assert [i.status for i in items] == ['bad']
    assert pagination['total'] == 1

    items, _ = InspectionService.list(search='dana')
    assert len(items) == 2
