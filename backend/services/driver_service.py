import logging
from backend.extensions import db
from backend.models.driver import Driver
from backend.services.errors import ValidationError, NotFoundError, UpstreamFailure
from flask_security.utils import hash_password
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

EDITABLE_FIELDS = ('name', 'username', 'phone', 'email', 'license_number', 'is_active')


class DriverService:
    @staticmethod
    def get_all(include_inactive=False):
        try:
            query = Driver.query if include_inactive else Driver.query_active()
            return query.order_by(Driver.name.asc()).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching drivers: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch drivers. Please try again later.")

    @staticmethod
    def get_by_id(driver_id):
        try:
            driver = db.session.get(Driver, driver_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching driver: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch driver. Please try again later.")
        if not driver:
            raise NotFoundError("Driver not found")
        return driver

    @staticmethod
    def get_by_username(username):
        try:
            return Driver.query.filter_by(username=username).first()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching driver by username: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch driver. Please try again later.")

    @staticmethod
    def create(data):
        try:
            driver = Driver(**{k: v for k, v in data.items() if k in EDITABLE_FIELDS})
            if data.get('password'):
                driver.hashed_password = hash_password(data['password'])
            db.session.add(driver)
            db.session.commit()
            return driver
        except IntegrityError as e:
            db.session.rollback()
            logging.warning(f"Driver create conflict: {e}")
            raise ValidationError("A driver with this username already exists")
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error creating driver: {e}", exc_info=True)
            raise UpstreamFailure("Could not create driver. Please try again later.")

    @staticmethod
    def update(driver_id, data):
        driver = DriverService.get_by_id(driver_id)
        try:
            for key, value in data.items():
                if key in EDITABLE_FIELDS:
                    setattr(driver, key, value)
            db.session.commit()
            return driver
        except IntegrityError as e:
            db.session.rollback()
            logging.warning(f"Driver update conflict: {e}")
            raise ValidationError("A driver with this username already exists")
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error updating driver: {e}", exc_info=True)
            raise UpstreamFailure("Could not update driver. Please try again later.")

    @staticmethod
    def set_password(driver_id, password):
        if not isinstance(password, str) or len(password) < 6:
            raise ValidationError("Password must be at least 6 characters")
        driver = DriverService.get_by_id(driver_id)
        try:
            driver.hashed_password = hash_password(password)
            db.session.commit()
            logging.info(f"Password changed for driver {driver_id}")
            return driver
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error setting driver password: {e}", exc_info=True)
            raise UpstreamFailure("Could not change password. Please try again later.")

    @staticmethod
    def delete(driver_id):
        """Deactivate; missions and daily checks keep pointing at the driver."""
        driver = DriverService.get_by_id(driver_id)
        try:
            driver.is_active = False
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error deleting driver: {e}", exc_info=True)
            raise UpstreamFailure("Could not delete driver. Please try again later.")
