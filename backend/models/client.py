from backend.extensions import db
from backend.models.json_variant import JSONVariant
from sqlalchemy import true

class Client(db.Model):
    __tablename__ = 'clients'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(128), nullable=True)
    address = db.Column(JSONVariant, nullable=True)
    contact_person = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False, server_default=true(), index=True)
    meta = db.Column('metadata', JSONVariant, nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    missions = db.relationship('Mission', back_populates='client', lazy='dynamic')

    @classmethod
    def query_active(cls):
        return cls.query.filter_by(is_active=True)

    def __repr__(self):
        return f"<Client {self.id} {self.name}>"
