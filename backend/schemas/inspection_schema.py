from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from marshmallow import fields
from backend.models.vehicle_inspection import VehicleInspection
from backend.utils.timezone_utils import format_datetime_for_api

class VehicleInspectionSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = VehicleInspection
        load_instance = True
        include_fk = True
        exclude = ('meta',)
    id = auto_field(dump_only=True)
    driver_id = auto_field()
    car_id = auto_field()
    metadata = fields.Dict(attribute='meta')
    status = fields.Method('get_status', dump_only=True)
    created_at = fields.Method('get_created_at', dump_only=True)
    updated_at = fields.Method('get_updated_at', dump_only=True)
    driver_name = fields.Method('get_driver_name', dump_only=True)

    def get_status(self, obj):
        return obj.status

    def get_created_at(self, obj):
        return format_datetime_for_api(obj.created_at)

    def get_updated_at(self, obj):
        return format_datetime_for_api(obj.updated_at)

    def get_driver_name(self, obj):
        return obj.driver.name if obj.driver else None
