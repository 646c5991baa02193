from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from marshmallow import fields, validate
from backend.models.car import Car

class CarSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Car
        load_instance = True
        exclude = ('meta',)
    id = auto_field(dump_only=True)
    plate_number = auto_field(validate=validate.Length(min=1, max=32))
    make = auto_field()
    model = auto_field()
    year = fields.Integer(allow_none=True, validate=validate.Range(min=1950, max=2100))
    color = auto_field()
    is_active = auto_field()
    metadata = fields.Dict(attribute='meta', allow_none=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)
