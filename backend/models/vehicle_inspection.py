from backend.extensions import db
from backend.models.json_variant import JSONVariant

class VehicleInspection(db.Model):
    """A driver's daily vehicle check. The good/bad verdict lives in metadata['status']."""
    __tablename__ = 'vehicle_inspections'
    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey('drivers.id', ondelete='CASCADE'), nullable=False, index=True)
    car_id = db.Column(db.Integer, db.ForeignKey('cars.id', ondelete='SET NULL'), nullable=True, index=True)
    meta = db.Column('metadata', JSONVariant, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp(), nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    driver = db.relationship('Driver', back_populates='inspections')
    car = db.relationship('Car')

    __table_args__ = (
        db.Index('idx_vehicle_inspections_driver_created', 'driver_id', 'created_at'),
    )

    @property
    def status(self):
        return (self.meta or {}).get('status')

    def __repr__(self):
        return f"<VehicleInspection {self.id} driver={self.driver_id}>"
