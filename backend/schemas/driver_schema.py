from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from marshmallow import fields, validate
from backend.models.driver import Driver

class DriverSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Driver
        load_instance = True
        exclude = ('hashed_password',)
    id = auto_field(dump_only=True)
    name = auto_field(validate=validate.Length(min=1, max=128))
    username = auto_field(validate=validate.Length(min=3, max=64))
    phone = auto_field()
    email = fields.Email(allow_none=True)
    license_number = auto_field()
    is_active = auto_field()
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)
    # Plain password on the way in only, stored hashed
    password = fields.String(load_only=True, validate=validate.Length(min=6))
