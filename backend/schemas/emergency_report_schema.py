from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from marshmallow import Schema, fields, validate, INCLUDE
from backend.models.emergency_report import EmergencyReport
from backend.utils.timezone_utils import format_datetime_for_api

class EmergencyReportSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = EmergencyReport
        include_fk = True
        exclude = ('meta',)
    id = auto_field(dump_only=True)
    metadata = fields.Dict(attribute='meta', allow_none=True)
    crash_data = fields.Raw(allow_none=True)
    created_at = fields.Method('get_created_at', dump_only=True)
    driver_name = fields.Method('get_driver_name', dump_only=True)

    def get_created_at(self, obj):
        return format_datetime_for_api(obj.created_at)

    def get_driver_name(self, obj):
        return obj.driver.name if obj.driver else None


class EmergencyReportInputSchema(Schema):
    """Mobile form payload, camelCase as the app sends it."""
    class Meta:
        unknown = INCLUDE

    car_id = fields.Integer(allow_none=True, load_default=None)
    type = fields.String(load_default='general', validate=validate.Length(min=1, max=64))
    formCompletionDate = fields.String(allow_none=True)
    identifierName = fields.String(allow_none=True)
    incidentDate = fields.String(allow_none=True)
    incidentTime = fields.String(allow_none=True)
    incidentDescription = fields.String(allow_none=True)
    vehicleNumber = fields.String(allow_none=True)
    driverAtTime = fields.String(allow_none=True)
    employeeInvolved = fields.String(allow_none=True)
    identifierSignature = fields.String(allow_none=True)
    crash_data = fields.Raw(allow_none=True, load_default=None)
    metadata = fields.Dict(allow_none=True, load_default=None)
