from backend.extensions import db
from backend.models.json_variant import JSONVariant

class EmergencyReport(db.Model):
    """Incident form filed by a driver from the mobile app (crash, theft, injury...)."""
    __tablename__ = 'emergency_reports'
    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey('drivers.id', ondelete='SET NULL'), nullable=True, index=True)
    car_id = db.Column(db.Integer, db.ForeignKey('cars.id', ondelete='SET NULL'), nullable=True, index=True)
    type = db.Column(db.String(64), nullable=False, default='general', index=True)
    form_completion_date = db.Column(db.String(32), nullable=True)
    identifier_name = db.Column(db.String(128), nullable=True)
    incident_date = db.Column(db.String(32), nullable=True, index=True)
    incident_time = db.Column(db.String(16), nullable=True)
    incident_description = db.Column(db.Text, nullable=True)
    vehicle_number = db.Column(db.String(32), nullable=True)
    driver_at_time = db.Column(db.String(128), nullable=True)
    employee_involved = db.Column(db.String(128), nullable=True)
    identifier_signature = db.Column(db.Text, nullable=True)
    crash_data = db.Column(JSONVariant, nullable=True)
    meta = db.Column('metadata', JSONVariant, nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp(), nullable=False, index=True)

    driver = db.relationship('Driver')
    car = db.relationship('Car')

    def __repr__(self):
        return f"<EmergencyReport {self.id} {self.type} driver={self.driver_id}>"
