import logging
from backend.extensions import db
from backend.models.client import Client
from backend.models.mission import Mission
from backend.services.errors import ValidationError, NotFoundError, UpstreamFailure
from backend.utils.mission_store import get_mission_store
from backend.utils.pagination import paginate_query
from backend.utils.timezone_utils import utc_now, format_datetime_for_api
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

EDITABLE_FIELDS = ('name', 'phone', 'email', 'address', 'contact_person', 'notes', 'is_active', 'meta')

# Filled from the merged client when the kept client has no value
MERGE_FILL_FIELDS = ('phone', 'email', 'address', 'contact_person')


def _columns(data):
    data = dict(data)
    if 'metadata' in data:
        data['meta'] = data.pop('metadata')
    return {k: v for k, v in data.items() if k in EDITABLE_FIELDS}


def _require_name(data):
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Client name is required")
    return name.strip()


class ClientService:
    @staticmethod
    def list(query=None, page=1, limit=None):
        """
        Active clients, busiest first.

        Each returned client carries `mission_count`; ties are ordered by name.
        """
        try:
            mission_count = func.count(Mission.id).label('mission_count')
            q = (
                db.session.query(Client, mission_count)
                .outerjoin(Mission, Mission.client_id == Client.id)
                .filter(Client.is_active.is_(True))
                .group_by(Client.id)
            )
            if query and query.strip():
                q = q.filter(Client.name.ilike(f"%{query.strip()}%"))
            q = q.order_by(mission_count.desc(), Client.name.asc())
            rows, pagination = paginate_query(q, page, limit)
            clients = []
            for client, count in rows:
                client.mission_count = count
                clients.append(client)
            return clients, pagination
        except SQLAlchemyError as e:
            logging.error(f"Error listing clients: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch clients. Please try again later.")

    @staticmethod
    def get_by_id(client_id):
        try:
            client = db.session.get(Client, client_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching client: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch client. Please try again later.")
        if not client:
            raise NotFoundError("Client not found")
        return client

    @staticmethod
    def create(data):
        """Returns (client, created). A client with the same name is returned as is."""
        name = _require_name(data)
        try:
            existing = Client.query.filter_by(name=name).first()
            if existing:
                return existing, False
            columns = _columns(data)
            columns['name'] = name
            client = Client(**columns)
            db.session.add(client)
            db.session.commit()
            return client, True
        except IntegrityError as e:
            db.session.rollback()
            logging.warning(f"Client create conflict: {e}")
            raise ValidationError("A client with this name already exists")
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error creating client: {e}", exc_info=True)
            raise UpstreamFailure("Could not create client. Please try again later.")

    @staticmethod
    def update(client_id, data):
        client = ClientService.get_by_id(client_id)
        _require_name(data)
        try:
            for key, value in _columns(data).items():
                setattr(client, key, value.strip() if key == 'name' else value)
            db.session.commit()
            return client
        except IntegrityError as e:
            db.session.rollback()
            logging.warning(f"Client update conflict: {e}")
            raise ValidationError("A client with this name already exists")
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error updating client: {e}", exc_info=True)
            raise UpstreamFailure("Could not update client. Please try again later.")

    @staticmethod
    def delete(client_id):
        """
        Delete a client without missions; a client with missions is only deactivated.

        Returns the deactivated client, or None when the row was deleted.
        """
        client = ClientService.get_by_id(client_id)
        try:
            if client.missions.count() > 0:
                client.is_active = False
                db.session.commit()
                return client
            db.session.delete(client)
            db.session.commit()
            return None
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error deleting client {client_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not delete client. Please try again later.")

    @staticmethod
    def merge(keep_client_id, merge_client_id, now=None):
        """
        Fold `merge_client_id` into `keep_client_id`.

        Missions move to the kept client, empty contact fields are filled from
        the merged one, notes are concatenated and the merged client's metadata
        is kept under `merged_from`. The merged client is deleted.
        """
        if not keep_client_id or not merge_client_id:
            raise ValidationError("Both client IDs are required")
        if keep_client_id == merge_client_id:
            raise ValidationError("Cannot merge client with itself")

        try:
            keep = db.session.get(Client, keep_client_id)
            merged = db.session.get(Client, merge_client_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching clients to merge: {e}", exc_info=True)
            raise UpstreamFailure("Could not merge clients. Please try again later.")
        if not keep or not merged:
            raise NotFoundError("One or both clients not found")

        now = now or utc_now()
        try:
            moved = (
                Mission.query
                .filter(Mission.client_id == merged.id)
                .update({Mission.client_id: keep.id}, synchronize_session=False)
            )

            for field in MERGE_FILL_FIELDS:
                if not getattr(keep, field):
                    setattr(keep, field, getattr(merged, field))
            if keep.notes and merged.notes:
                keep.notes = f"{keep.notes}\n\nMerged from: {merged.name}\n{merged.notes}"
            elif merged.notes:
                keep.notes = merged.notes

            keep.meta = {
                **(keep.meta or {}),
                **(merged.meta or {}),
                'merged_from': {
                    'client_id': merged.id,
                    'client_name': merged.name,
                    'merged_at': format_datetime_for_api(now),
                    'original_metadata': merged.meta,
                },
            }
            merged_name = merged.name
            db.session.delete(merged)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error merging client {merge_client_id} into {keep_client_id}: {e}", exc_info=True)
            raise UpstreamFailure("Could not merge clients. Please try again later.")

        logging.info(f"Merged client {merge_client_id} into {keep_client_id}, {moved} missions moved")
        store = get_mission_store()
        if store is not None:
            store.invalidate()
        return keep, merged_name
