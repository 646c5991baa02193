from backend.extensions import db
from backend.models.json_variant import JSONVariant
from sqlalchemy import true

class Car(db.Model):
    __tablename__ = 'cars'
    id = db.Column(db.Integer, primary_key=True)
    plate_number = db.Column(db.String(32), unique=True, nullable=False, index=True)
    make = db.Column(db.String(64), nullable=True)
    model = db.Column(db.String(64), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    color = db.Column(db.String(32), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False, server_default=true())
    meta = db.Column('metadata', JSONVariant, nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    missions = db.relationship('Mission', back_populates='car', lazy='dynamic')

    @classmethod
    def query_active(cls):
        return cls.query.filter_by(is_active=True)

    def __repr__(self):
        return f"<Car {self.plate_number}>"
