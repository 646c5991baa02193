from backend.extensions import db
from backend.models.json_variant import JSONVariant
from enum import Enum

class MissionStatus(Enum):
    UNASSIGNED = "unassigned"
    WAITING = "waiting"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PROBLEM = "problem"

    @classmethod
    def values(cls):
        return [status.value for status in cls]


# Dashboard ordering: problems first, finished work last
STATUS_PRIORITY = {
    MissionStatus.PROBLEM.value: 1,
    MissionStatus.IN_PROGRESS.value: 2,
    MissionStatus.WAITING.value: 3,
    MissionStatus.UNASSIGNED.value: 4,
    MissionStatus.COMPLETED.value: 5,
}

TERMINAL_STATUSES = {MissionStatus.COMPLETED.value}


class Mission(db.Model):
    __tablename__ = 'missions'
    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(64), nullable=False, default='delivery')
    subtype = db.Column(db.String(64), nullable=True)
    address = db.Column(JSONVariant, nullable=True)
    client_id = db.Column(db.Integer, db.ForeignKey('clients.id', ondelete='SET NULL'), nullable=True, index=True)
    client_name = db.Column(db.String(128), nullable=True, index=True)
    client_phone = db.Column(db.String(32), nullable=True)
    driver_id = db.Column(db.Integer, db.ForeignKey('drivers.id', ondelete='SET NULL'), nullable=True, index=True)
    car_id = db.Column(db.Integer, db.ForeignKey('cars.id', ondelete='SET NULL'), nullable=True, index=True)
    status = db.Column(db.String(32), nullable=False, default=MissionStatus.UNASSIGNED.value, index=True)
    date_expected = db.Column(db.DateTime, nullable=True, index=True)
    completed_at = db.Column(db.DateTime, nullable=True)
    certificates = db.Column(JSONVariant, nullable=True)
    # "metadata" is reserved on declarative models, the column keeps its name
    meta = db.Column('metadata', JSONVariant, nullable=True)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp(), index=True)
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    driver = db.relationship('Driver', back_populates='missions', lazy='select')
    car = db.relationship('Car', back_populates='missions', lazy='select')
    client = db.relationship('Client', back_populates='missions', lazy='select')

    __table_args__ = (
        db.CheckConstraint(
            f"status IN ({', '.join([repr(status.value) for status in MissionStatus])})",
            name='check_mission_status'
        ),
    )

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    @property
    def is_assigned(self):
        return self.driver_id is not None or self.car_id is not None

    def can_transition_to(self, new_status):
        """
        Whether the mission may move from its current status to `new_status`.

        - COMPLETED is terminal: only a repeated completion is accepted
        - every other status may move to any known status
        """
        if new_status not in MissionStatus.values():
            return False
        if self.is_terminal:
            return new_status == MissionStatus.COMPLETED.value
        return True

    @property
    def formatted_address(self):
        if not self.address or not isinstance(self.address, dict):
            return None
        street = self.address.get('address') or ''
        city = self.address.get('city') or ''
        zip_code = self.address.get('zip_code') or ''
        return f"{street}, {city} {zip_code}".strip()

    def __repr__(self):
        return f"<Mission {self.id} status={self.status}>"
