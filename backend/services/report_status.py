"""Good/bad verdict for a driver's daily vehicle inspection."""

# Boolean items of the daily check form. Only an explicit False fails an item.
CHECK_ITEMS = (
    'engineOil',
    'coolantWater',
    'windshieldWasherFluid',
    'ureaOver50',
    'dieselOver50',
    'lightsAndMirrors',
    'spareWheel',
    'wheelChangeKit',
    'compulsoryInsuranceValid',
    'propertyInsuranceValid',
    'vehicleTest',
    'doorOpening',
    'trolley',
    'cameras',
    'drivingSystems',
    'cellPhone',
    'externalInternalCleaning',
    'winchCap',
    'winchBattery',
    'winchRemote',
    'winchChargingCable',
    'colorKit',
    'phoneCharger',
    'fridge',
    'returnLight',
)

# Free-text fields where any content means something needs attention
ISSUE_TEXT_FIELDS = ('paintAndBody', 'eventsObligatingReporting')

REPORT_GOOD = 'good'
REPORT_BAD = 'bad'


def _has_text(value):
    return isinstance(value, str) and value.strip() != ''


def calculate_report_status(metadata):
    """
    Classify inspection metadata as 'good' or 'bad'.

    An item that is missing or None does not fail the report; only a value
    that `is False` does.
    """
    metadata = metadata or {}

    for key in CHECK_ITEMS:
        if metadata.get(key) is False:
            return REPORT_BAD

    for key in ISSUE_TEXT_FIELDS:
        if _has_text(metadata.get(key)):
            return REPORT_BAD

    return REPORT_GOOD


def failed_items(metadata):
    """Keys of the check items explicitly marked False."""
    metadata = metadata or {}
    return [key for key in CHECK_ITEMS if metadata.get(key) is False]
