from backend.services.report_status import (
    CHECK_ITEMS, REPORT_BAD, REPORT_GOOD, calculate_report_status, failed_items
)


def all_ok():
    return {key: True for key in CHECK_ITEMS}


def test_all_items_true_is_good():
    assert calculate_report_status(all_ok()) == REPORT_GOOD


def test_empty_metadata_is_good():
    assert calculate_report_status({}) == REPORT_GOOD
    assert calculate_report_status(None) == REPORT_GOOD


def test_missing_and_none_items_do_not_fail():
    meta = all_ok()
    del meta['engineOil']
    meta['fridge'] = None
    assert calculate_report_status(meta) == REPORT_GOOD


def test_single_false_item_is_bad():
    for key in CHECK_ITEMS:
        meta = all_ok()
        meta[key] = False
        assert calculate_report_status(meta) == REPORT_BAD, key


def test_falsy_non_bool_is_not_a_failure():
    meta = all_ok()
    meta['cameras'] = 0
    meta['trolley'] = ''
    assert calculate_report_status(meta) == REPORT_GOOD


def test_paint_and_body_text_is_bad():
    meta = all_ok()
    meta['paintAndBody'] = 'scratch on rear door'
    assert calculate_report_status(meta) == REPORT_BAD


def test_events_text_is_bad():
    meta = all_ok()
    meta['eventsObligatingReporting'] = 'minor accident'
    assert calculate_report_status(meta) == REPORT_BAD


def test_blank_free_text_is_ignored():
    meta = all_ok()
    meta['paintAndBody'] = '   '
    meta['eventsObligatingReporting'] = ''
    assert calculate_report_status(meta) == REPORT_GOOD


def test_unknown_keys_are_ignored():
    meta = all_ok()
    meta['someNewField'] = False
    assert calculate_report_status(meta) == REPORT_GOOD


def test_failed_items_lists_explicit_false_only():
    meta = all_ok()
    meta['winchCap'] = False
    meta['colorKit'] = False
    meta['fridge'] = None
    assert failed_items(meta) == ['winchCap', 'colorKit']
