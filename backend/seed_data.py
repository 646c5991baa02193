# DISCLAIMER: THIS IS NOT REAL DATA. ALL CONTENT IN THIS FILE IS ENTIRELY FICTITIOUS AND INTENDED SOLELY FOR PROOF OF CONCEPT (POC) PURPOSES. ANY RESEMBLANCE TO REAL INDIVIDUALS OR ORGANIZATIONS IS PURELY COINCIDENTAL.
import os
import sys
import uuid
from datetime import timedelta
import random

# Add the parent directory to the Python path so we can import backend modules
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(current_dir)
sys.path.insert(0, project_root)

from flask_security.utils import hash_password
from sqlalchemy import text

from backend.server import app, db
from backend.models.user import User
from backend.models.role import Role
from backend.models.driver import Driver
from backend.models.car import Car
from backend.models.client import Client
from backend.models.emergency_report import EmergencyReport
from backend.models.mission import Mission
from backend.models.mission_audit import MissionAudit
from backend.models.vehicle_inspection import VehicleInspection
from backend.services.report_status import CHECK_ITEMS, calculate_report_status
from backend.utils.timezone_utils import utc_now


# Helper: get or create
def get_or_create(model, defaults=None, **kwargs):
    instance = model.query.filter_by(**kwargs).first()
    if instance:
        return instance
    params = dict(kwargs)
    if defaults:
        params.update(defaults)
    instance = model(**params)
    db.session.add(instance)
    db.session.commit()
    return instance


CITIES = ['Tel Aviv', 'Haifa', 'Jerusalem', 'Beersheba', 'Netanya']
STREETS = ['Herzl St 12', 'Allenby St 40', 'Jaffa Rd 97', 'Ben Yehuda St 5', 'Weizmann St 18']
FAILURE_REASONS = ['Customer not home', 'Wrong address', 'Gate locked', 'Package damaged']


def seed_missions(drivers, cars, clients, count=30):
    now = utc_now().replace(tzinfo=None)
    for i in range(count):
        driver = random.choice(drivers + [None])
        car = random.choice(cars) if driver else None
        client = random.choice(clients)
        date_expected = now + timedelta(hours=random.randint(-72, 72))
        mission = Mission(
            type=random.choice(['delivery', 'pickup', 'installation']),
            address={
                'address': random.choice(STREETS),
                'city': random.choice(CITIES),
                'zip_code': f"{random.randint(1000000, 9999999)}",
            },
            client_id=client.id,
            client_name=client.name,
            client_phone=f"05{random.randint(0, 9)}-{random.randint(1000000, 9999999)}",
            driver_id=driver.id if driver else None,
            car_id=car.id if car else None,
            status='waiting' if driver else 'unassigned',
            date_expected=date_expected,
            meta={},
        )
        if driver and date_expected < now:
            if random.random() < 0.7:
                mission.status = 'completed'
                mission.completed_at = date_expected + timedelta(minutes=random.randint(10, 90))
                mission.meta = {'certificate_images': [], 'package_images': []}
            else:
                mission.status = 'problem'
                mission.meta = {
                    'failure_reason': random.choice(FAILURE_REASONS),
                    'failure_images': [],
                    'failure_location': None,
                    'reported': False,
                    'reported_to': None,
                    'date_failed': date_expected.isoformat() + '+00:00',
                }
        db.session.add(mission)
        db.session.flush()
        db.session.add(MissionAudit(mission_id=mission.id, old_status=None,
                                    new_status=mission.status, reason='seeded'))
    db.session.commit()


def seed_inspections(drivers, cars):
    now = utc_now().replace(tzinfo=None)
    # Leave one driver without today's check so the overview has something pending
    for driver, car in zip(drivers[:-1], cars):
        meta = {key: True for key in CHECK_ITEMS}
        meta.update({
            'vehicleNumber': car.plate_number,
            'driverName': driver.name,
            'driverSignature': 'seed-signature',
            'odometerReading': random.randint(20000, 180000),
        })
        if random.random() < 0.3:
            meta[random.choice(CHECK_ITEMS)] = False
        meta['status'] = calculate_report_status(meta)
        db.session.add(VehicleInspection(driver_id=driver.id, car_id=car.id, meta=meta,
                                         created_at=now - timedelta(minutes=random.randint(5, 60))))
    db.session.commit()


def main():
    print("Starting database seeding...")

    with app.app_context():
        print("Creating database tables...")
        db.create_all()

        print("Clearing existing data...")
        try:
            db.session.query(MissionAudit).delete()
            db.session.query(Mission).delete()
            db.session.query(VehicleInspection).delete()
            db.session.query(EmergencyReport).delete()
            db.session.query(Client).delete()
            db.session.query(Car).delete()
            db.session.query(Driver).delete()
            db.session.execute(text('DELETE FROM roles_users'))
            db.session.query(User).delete()
            db.session.query(Role).delete()
            db.session.commit()
            print("Existing data cleared successfully")
        except Exception as e:
            print(f"Warning: Could not clear existing data: {e}")
            db.session.rollback()

        # --- Roles ---
        print("Creating roles...")
        admin_role = get_or_create(Role, name='admin', defaults={'description': 'System Administrator'})
        manager_role = get_or_create(Role, name='manager', defaults={'description': 'Operations Manager'})
        dispatcher_role = get_or_create(Role, name='dispatcher', defaults={'description': 'Dispatcher'})

        # --- Dashboard users ---
        print("Creating users...")
        for email, name, role in (
            ('admin@dispatch.local', 'Admin', admin_role),
            ('manager@dispatch.local', 'Noa Manager', manager_role),
            ('dispatcher@dispatch.local', 'Eli Dispatcher', dispatcher_role),
        ):
            user = get_or_create(User, email=email, defaults={
                'name': name,
                'password': hash_password('Passw0rd!'),
                'active': True,
                'fs_uniquifier': uuid.uuid4().hex,
            })
            if role not in user.roles:
                user.roles.append(role)
        db.session.commit()

        # --- Cars ---
        print("Creating cars...")
        cars = [
            get_or_create(Car, plate_number=plate, defaults={'make': make, 'model': model, 'year': year})
            for plate, make, model, year in (
                ('12-345-67', 'Isuzu', 'D-Max', 2021),
                ('23-456-78', 'Ford', 'Transit', 2020),
                ('34-567-89', 'Mercedes', 'Sprinter', 2022),
                ('45-678-90', 'Renault', 'Master', 2019),
            )
        ]

        # --- Drivers ---
        print("Creating drivers...")
        drivers = [
            get_or_create(Driver, username=username, defaults={
                'name': name,
                'hashed_password': hash_password('driver123'),
                'phone': phone,
                'license_number': f"LIC-{random.randint(100000, 999999)}",
            })
            for username, name, phone in (
                ('dana', 'Dana Levi', '050-1111111'),
                ('omer', 'Omer Katz', '052-2222222'),
                ('yael', 'Yael Cohen', '054-3333333'),
                ('amir', 'Amir Haddad', '053-4444444'),
            )
        ]

        print("Creating clients...")
        clients = [
            get_or_create(Client, name=name, defaults={'phone': phone, 'contact_person': contact})
            for name, phone, contact in (
                ('Negev Appliances', '08-6200000', 'Rina'),
                ('Carmel Furniture', '04-8100000', 'Yossi'),
                ('Sharon Electric', '09-7400000', 'Maya'),
            )
        ]

        print("Creating missions...")
        seed_missions(drivers, cars, clients)
        print("Creating daily checks...")
        seed_inspections(drivers, cars)

        print("Seeding complete.")


if __name__ == '__main__':
    main()
