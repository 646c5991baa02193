from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from marshmallow import Schema, fields, validate
from backend.models.mission import Mission, MissionStatus
from backend.utils.timezone_utils import format_datetime_for_api

class MissionSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Mission
        load_instance = True
        include_fk = True
        exclude = ('meta',)
    id = auto_field(dump_only=True)
    type = auto_field()
    subtype = auto_field()
    address = fields.Raw(allow_none=True)
    client_id = auto_field()
    client_name = auto_field()
    client_phone = auto_field()
    driver_id = auto_field()
    car_id = auto_field()
    status = auto_field()
    date_expected = fields.Method('get_date_expected', dump_only=True)
    completed_at = fields.Method('get_completed_at', dump_only=True)
    created_at = fields.Method('get_created_at', dump_only=True)
    updated_at = fields.Method('get_updated_at', dump_only=True)
    certificates = fields.Raw(allow_none=True)
    metadata = fields.Dict(attribute='meta', allow_none=True)

    # Computed fields for the dashboard and the driver app
    formatted_address = fields.Method('get_formatted_address', dump_only=True)
    driver = fields.Method('get_driver_name', dump_only=True)
    car_number = fields.Method('get_car_number', dump_only=True)

    def get_date_expected(self, obj):
        return format_datetime_for_api(obj.date_expected)

    def get_completed_at(self, obj):
        return format_datetime_for_api(obj.completed_at)

    def get_created_at(self, obj):
        return format_datetime_for_api(obj.created_at)

    def get_updated_at(self, obj):
        return format_datetime_for_api(obj.updated_at)

    def get_formatted_address(self, obj):
        return obj.formatted_address

    def get_driver_name(self, obj):
        return obj.driver.name if obj.driver else None

    def get_car_number(self, obj):
        return obj.car.plate_number if obj.car else None


class MissionInputSchema(Schema):
    """Dispatcher create/edit payload."""
    type = fields.String(validate=validate.Length(min=1, max=64))
    subtype = fields.String(allow_none=True)
    address = fields.Raw(allow_none=True)
    client_id = fields.Integer(allow_none=True)
    client_name = fields.String(allow_none=True)
    client_phone = fields.String(allow_none=True)
    driver_id = fields.Integer(allow_none=True)
    car_id = fields.Integer(allow_none=True)
    status = fields.String(validate=validate.OneOf(MissionStatus.values()))
    date_expected = fields.DateTime(allow_none=True)
    completed_at = fields.DateTime(allow_none=True)
    certificates = fields.List(fields.Dict(), allow_none=True)
    metadata = fields.Dict(allow_none=True)
    failure_reason = fields.String()


class MissionAuditSchema(Schema):
    id = fields.Integer()
    mission_id = fields.Integer()
    changed_at = fields.Method('get_changed_at')
    changed_by_user_id = fields.Integer(allow_none=True)
    changed_by_driver_id = fields.Integer(allow_none=True)
    old_status = fields.String(allow_none=True)
    new_status = fields.String()
    reason = fields.String(allow_none=True)
    additional_data = fields.Raw(allow_none=True)

    def get_changed_at(self, obj):
        return format_datetime_for_api(obj.changed_at)
