from backend.extensions import db
from backend.models.json_variant import JSONVariant

class MissionAudit(db.Model):
    __tablename__ = 'mission_audit'

    id = db.Column(db.Integer, primary_key=True)
    mission_id = db.Column(db.Integer, db.ForeignKey('missions.id', ondelete="CASCADE"), nullable=False, index=True)
    changed_at = db.Column(db.DateTime, nullable=False, server_default=db.func.current_timestamp())
    changed_by_user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete="SET NULL"), nullable=True)
    changed_by_driver_id = db.Column(db.Integer, db.ForeignKey('drivers.id', ondelete="SET NULL"), nullable=True)
    old_status = db.Column(db.String(50), nullable=True)
    new_status = db.Column(db.String(50), nullable=False)
    reason = db.Column(db.Text, nullable=True)
    additional_data = db.Column(JSONVariant, nullable=True)

    # Relationships
    mission = db.relationship('Mission', backref=db.backref('audit_records', cascade='all, delete-orphan', lazy='dynamic'))
