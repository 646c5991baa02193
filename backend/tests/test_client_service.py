from datetime import datetime, timezone

import pytest

from backend.models.client import Client
from backend.models.mission import Mission
from backend.services.client_service import ClientService
from backend.services.errors import NotFoundError, ValidationError


class TestCreate:
    def test_name_required(self, db):
        with pytest.raises(ValidationError):
            ClientService.create({'name': '  '})

    def test_existing_name_is_returned(self, make_client):
        acme = make_client(name='Acme')
        client, created = ClientService.create({'name': 'Acme', 'phone': '03-1111111'})
        assert created is False
        assert client.id == acme.id
        assert client.phone is None

    def test_metadata_is_stored_on_meta(self, db):
        client, created = ClientService.create({'name': 'Beta', 'metadata': {'vip': True}})
        assert created is True
        assert client.meta == {'vip': True}


class TestList:
    def test_busiest_first_then_name(self, make_client, make_mission):
        quiet = make_client(name='Aleph')
        busy = make_client(name='Zayin')
        make_client(name='Bet')
        make_client(name='Gone', is_active=False)
        make_mission(client_id=busy.id)
        make_mission(client_id=busy.id)
        make_mission(client_id=quiet.id)

        clients, pagination = ClientService.list()
        assert [(c.name, c.mission_count) for c in clients] == [('Zayin', 2), ('Aleph', 1), ('Bet', 0)]
        assert pagination['total'] == 3

    def test_query_and_paging(self, make_client):
        for name in ('Acme North', 'Acme South', 'Other'):
            make_client(name=name)
        clients, pagination = ClientService.list('acme', page=2, limit=1)
        assert [c.name for c in clients] == ['Acme South']
        assert pagination == {'page': 2, 'limit': 1, 'total': 2, 'totalPages': 2}


class TestDelete:
    def test_without_missions_is_deleted(self, db, make_client):
        client = make_client()
        assert ClientService.delete(client.id) is None
        assert db.session.get(Client, client.id) is None

    def test_with_missions_is_deactivated(self, make_client, make_mission):
        client = make_client()
        make_mission(client_id=client.id)
        result = ClientService.delete(client.id)
        assert result.id == client.id
        assert result.is_active is False


class TestMerge:
    def test_moves_missions_and_fills_fields(self, db, make_client, make_mission):
        keep = make_client(name='Acme', notes='Back door', meta={'tier': 'gold'})
        dup = make_client(name='ACME Ltd', phone='03-5555555', notes='Ring twice', meta={'source': 'import'})
        mission = make_mission(client_id=dup.id)
        now = datetime(2024, 1, 15, 14, 0, tzinfo=timezone.utc)

        client, merged_name = ClientService.merge(keep.id, dup.id, now=now)

        assert merged_name == 'ACME Ltd'
        assert client.phone == '03-5555555'
        assert client.notes == 'Back door\n\nMerged from: ACME Ltd\nRing twice'
        assert client.meta['tier'] == 'gold'
        assert client.meta['source'] == 'import'
        assert client.meta['merged_from'] == {
            'client_id': dup.id,
            'client_name': 'ACME Ltd',
            'merged_at': '2024-01-15T14:00:00+00:00',
            'original_metadata': {'source': 'import'},
        }
        assert db.session.get(Mission, mission.id).client_id == keep.id
        assert db.session.get(Client, dup.id) is None

    def test_same_client(self, db):
        with pytest.raises(ValidationError):
            ClientService.merge(1, 1)

    def test_missing_ids(self, db):
        with pytest.raises(ValidationError):
            ClientService.merge(None, 2)

    def test_unknown_client(self, make_client):
        keep = make_client()
        with pytest.raises(NotFoundError):
            ClientService.merge(keep.id, 999)
