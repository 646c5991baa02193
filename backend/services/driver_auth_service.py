"""
Bearer tokens for the driver mobile app.

Drivers are not dashboard users: they sign in with the username/password on
their Driver row and receive an HS256 JWT. Every request re-loads the driver
so a deactivated account is locked out before its token expires.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

import jwt
from flask import current_app
from flask_security.utils import verify_password
from sqlalchemy.exc import SQLAlchemyError

from backend.extensions import db
from backend.models.driver import Driver
from backend.services.errors import UnauthorizedError, UpstreamFailure, ValidationError
from backend.utils.timezone_utils import utc_now


@dataclass
class DriverIdentity:
    driver_id: int
    name: str
    is_active: bool
    username: Optional[str] = None


def _profile(driver):
    return {
        'id': driver.id,
        'name': driver.name,
        'username': driver.username,
        'phone': driver.phone,
        'email': driver.email,
    }


class DriverAuthService:
    @staticmethod
    def issue_token(driver, now=None):
        now = now or utc_now()
        hours = current_app.config.get('JWT_EXPIRY_HOURS', 24)
        payload = {
            'driverId': driver.id,
            'username': driver.username,
            'name': driver.name,
            'phone': driver.phone,
            'email': driver.email,
            'iat': now,
            'exp': now + timedelta(hours=hours),
        }
        return jwt.encode(
            payload,
            current_app.config['JWT_SECRET_KEY'],
            algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256'),
        )

    @staticmethod
    def authenticate(username, password):
        """Check credentials and return {'token', 'driver'}."""
        if not username or not password:
            raise ValidationError("Username and password are required")
        try:
            driver = Driver.query.filter_by(username=username).first()
        except SQLAlchemyError as e:
            logging.error(f"Error loading driver for login: {e}", exc_info=True)
            raise UpstreamFailure("Could not sign in. Please try again later.")

        if not driver or not driver.hashed_password or not verify_password(password, driver.hashed_password):
            logging.warning(f"Failed driver login for username '{username}'")
            raise UnauthorizedError("Invalid username or password", code=401)
        if not driver.is_active:
            raise UnauthorizedError("Driver account is inactive")

        logging.info(f"Driver {driver.id} signed in")
        return {'token': DriverAuthService.issue_token(driver), 'driver': _profile(driver)}

    @staticmethod
    def verify_token(token):
        """
        Decode a bearer token and load its driver.

        Raises UnauthorizedError with code 401 for a missing, invalid or
        expired token (or an unknown driver) and 403 for an inactive driver.
        """
        if not token:
            raise UnauthorizedError("Authentication token is missing", code=401)
        try:
            payload = jwt.decode(
                token,
                current_app.config['JWT_SECRET_KEY'],
                algorithms=[current_app.config.get('JWT_ALGORITHM', 'HS256')],
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Token has expired", code=401)
        except jwt.InvalidTokenError:
            raise UnauthorizedError("Invalid token", code=401)

        driver_id = payload.get('driverId')
        if not isinstance(driver_id, int):
            raise UnauthorizedError("Invalid token", code=401)
        try:
            driver = db.session.get(Driver, driver_id)
        except SQLAlchemyError as e:
            logging.error(f"Error loading driver for token: {e}", exc_info=True)
            raise UpstreamFailure("Could not verify the session. Please try again later.")
        if not driver:
            raise UnauthorizedError("Invalid token", code=401)
        if not driver.is_active:
            raise UnauthorizedError("Driver account is inactive")
        return DriverIdentity(driver_id=driver.id, name=driver.name,
                              is_active=driver.is_active, username=driver.username)
