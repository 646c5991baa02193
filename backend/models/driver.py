from backend.extensions import db
from sqlalchemy import true

class Driver(db.Model):
    __tablename__ = 'drivers'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, index=True)
    username = db.Column(db.String(64), unique=True, nullable=True, index=True)
    hashed_password = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(128), nullable=True)
    license_number = db.Column(db.String(64), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False, server_default=true(), index=True)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    missions = db.relationship('Mission', back_populates='driver', lazy='dynamic')
    inspections = db.relationship('VehicleInspection', back_populates='driver', lazy='dynamic')

    @classmethod
    def query_active(cls):
        """Query drivers allowed to work (and evaluated for daily checks)"""
        return cls.query.filter_by(is_active=True)

    def __repr__(self):
        return f"<Driver {self.id} {self.name}>"
