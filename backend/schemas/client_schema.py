from marshmallow_sqlalchemy import SQLAlchemyAutoSchema, auto_field
from marshmallow import fields, validate
from backend.models.client import Client

class ClientSchema(SQLAlchemyAutoSchema):
    class Meta:
        model = Client
        load_instance = True
        exclude = ('meta',)
    id = auto_field(dump_only=True)
    name = auto_field(validate=validate.Length(min=1, max=128))
    phone = auto_field()
    email = fields.Email(allow_none=True)
    address = fields.Raw(allow_none=True)
    contact_person = auto_field()
    notes = auto_field()
    is_active = auto_field()
    metadata = fields.Dict(attribute='meta', allow_none=True)
    # Set by ClientService.list only
    mission_count = fields.Integer(dump_only=True)
    created_at = auto_field(dump_only=True)
    updated_at = auto_field(dump_only=True)
