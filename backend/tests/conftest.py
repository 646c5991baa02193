from datetime import datetime, timezone

import pytest
from flask_security.utils import hash_password

from backend.config import TestingConfig
from backend.extensions import db as _db
from backend.models.car import Car
from backend.models.client import Client
from backend.models.driver import Driver
from backend.models.mission import Mission
from backend.models.vehicle_inspection import VehicleInspection
from backend.server import create_app


@pytest.fixture
def app(tmp_path):
    class Config(TestingConfig):
        IMAGE_STORAGE_ROOT = str(tmp_path / "images")

    app = create_app(Config)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_driver(db):
    def _make(name="Dana Levi", username=None, password="secret123", is_active=True, **kwargs):
        driver = Driver(
            name=name,
            username=username,
            hashed_password=hash_password(password) if username else None,
            is_active=is_active,
            **kwargs,
        )
        db.session.add(driver)
        db.session.commit()
        return driver
    return _make


@pytest.fixture
def make_car(db):
    def _make(plate_number="12-345-67", **kwargs):
        car = Car(plate_number=plate_number, **kwargs)
        db.session.add(car)
        db.session.commit()
        return car
    return _make


@pytest.fixture
def make_mission(db):
    def _make(driver=None, car=None, status=None, date_expected=None, meta=None, **kwargs):
        assigned = driver is not None or car is not None
        mission = Mission(
            type=kwargs.pop('type', 'delivery'),
            driver_id=driver.id if driver else None,
            car_id=car.id if car else None,
            status=status or ('waiting' if assigned else 'unassigned'),
            date_expected=date_expected,
            meta=meta if meta is not None else {},
            **kwargs,
        )
        db.session.add(mission)
        db.session.commit()
        return mission
    return _make


@pytest.fixture
def make_inspection(db):
    def _make(driver, created_at, status='good', vehicle_number='12-345-67', **meta):
        inspection = VehicleInspection(
            driver_id=driver.id,
            created_at=created_at,
            meta={'vehicleNumber': vehicle_number, 'status': status, **meta},
        )
        db.session.add(inspection)
        db.session.commit()
        return inspection
    return _make


@pytest.fixture
def fixed_now():
    """14:00 UTC / 16:00 Asia/Jerusalem on a winter day."""
    return datetime(2024, 1, 15, 14, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_client(db):
    def _make(name="Acme Ltd", **kwargs):
        client = Client(name=name, **kwargs)
        db.session.add(client)
        db.session.commit()
        return client
    return _make
