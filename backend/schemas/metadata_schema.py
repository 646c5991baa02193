"""
Schemas for the JSON metadata bags on missions and inspections.

Each kind of write (completion, failure, inspection) has its own schema so
known keys are type checked. `unknown = INCLUDE` keeps keys this version does
not know about, so newer mobile clients can add fields without being rejected.
"""
from marshmallow import Schema, fields, INCLUDE, post_load, validate

from backend.services.report_status import CHECK_ITEMS


class LocationSchema(Schema):
    class Meta:
        unknown = INCLUDE

    lat = fields.Float(required=True, validate=validate.Range(min=-90, max=90))
    lng = fields.Float(required=True, validate=validate.Range(min=-180, max=180))


class ImageListMixin:
    @staticmethod
    def _empty_lists(data, keys):
        for key in keys:
            if data.get(key) is None:
                data[key] = []
        return data


class CompletionMetadataSchema(Schema, ImageListMixin):
    class Meta:
        unknown = INCLUDE

    certificate_images = fields.List(fields.String(), allow_none=True, load_default=list)
    package_images = fields.List(fields.String(), allow_none=True, load_default=list)
    register_location = fields.Dict(allow_none=True)

    @post_load
    def default_images(self, data, **kwargs):
        return self._empty_lists(data, ('certificate_images', 'package_images'))


class FailureMetadataSchema(Schema, ImageListMixin):
    class Meta:
        unknown = INCLUDE

    failure_images = fields.List(fields.String(), allow_none=True, load_default=list)
    failure_location = fields.Nested(LocationSchema, allow_none=True, load_default=None)
    failure_reason = fields.String(required=True, validate=validate.Length(min=1))
    reported = fields.Boolean(load_default=False)
    reported_to = fields.String(allow_none=True, load_default=None)
    date_failed = fields.String(required=True)

    @post_load
    def default_images(self, data, **kwargs):
        return self._empty_lists(data, ('failure_images',))


def _inspection_fields():
    declared = {key: fields.Raw(allow_none=True) for key in CHECK_ITEMS}
    declared.update({
        'vehicleNumber': fields.String(required=True, validate=validate.Length(min=1)),
        'driverSignature': fields.String(required=True, validate=validate.Length(min=1)),
        'driverName': fields.String(allow_none=True),
        'registrationNumber': fields.String(allow_none=True),
        'inspectionDate': fields.String(allow_none=True),
        'inspectionTime': fields.String(allow_none=True),
        'odometerReading': fields.Raw(allow_none=True),
        'paintAndBody': fields.String(allow_none=True),
        'eventsObligatingReporting': fields.String(allow_none=True),
        'notes': fields.String(allow_none=True),
        'status': fields.String(dump_only=True),
    })
    return declared


class _OpenSchema(Schema):
    class Meta:
        unknown = INCLUDE


InspectionMetadataSchema = _OpenSchema.from_dict(_inspection_fields(), name='InspectionMetadataSchema')
