from datetime import datetime, timedelta, timezone

import jwt
import pytest

from backend.services.driver_auth_service import DriverAuthService, DriverIdentity
from backend.services.errors import UnauthorizedError, ValidationError


def test_authenticate_returns_token_and_profile(app, make_driver):
    driver = make_driver(name="Dana Levi", username="dana", password="secret123", phone="050-1234567")
    result = DriverAuthService.authenticate("dana", "secret123")

    assert result['driver'] == {
        'id': driver.id, 'name': 'Dana Levi', 'username': 'dana', 'phone': '050-1234567', 'email': None,
    }
    payload = jwt.decode(result['token'], app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
    assert payload['driverId'] == driver.id
    assert payload['exp'] - payload['iat'] == 24 * 3600


def test_wrong_password_is_401(make_driver):
    make_driver(username="dana", password="secret123")
    with pytest.raises(UnauthorizedError) as exc:
        DriverAuthService.authenticate("dana", "nope")
    assert exc.value.code == 401


def test_unknown_user_is_401(app):
    with pytest.raises(UnauthorizedError) as exc:
        DriverAuthService.authenticate("ghost", "secret123")
    assert exc.value.code == 401


def test_missing_credentials(app):
    with pytest.raises(ValidationError):
        DriverAuthService.authenticate("", "")


def test_inactive_driver_cannot_sign_in(make_driver):
    make_driver(username="dana", password="secret123", is_active=False)
    with pytest.raises(UnauthorizedError) as exc:
        DriverAuthService.authenticate("dana", "secret123")
    assert exc.value.code == 403


def test_verify_token_round_trip(make_driver):
    driver = make_driver(username="dana")
    identity = DriverAuthService.verify_token(DriverAuthService.issue_token(driver))
    assert identity == DriverIdentity(driver_id=driver.id, name=driver.name, is_active=True, username="dana")


def test_expired_token_is_401(make_driver):
    driver = make_driver(username="dana")
    token = DriverAuthService.issue_token(driver, now=datetime.now(timezone.utc) - timedelta(hours=25))
    with pytest.raises(UnauthorizedError) as exc:
        DriverAuthService.verify_token(token)
    assert exc.value.code == 401


def test_token_signed_with_other_key_is_401(app, make_driver):
    driver = make_driver(username="dana")
    token = jwt.encode({'driverId': driver.id}, 'someone-else', algorithm='HS256')
    with pytest.raises(UnauthorizedError) as exc:
        DriverAuthService.verify_token(token)
    assert exc.value.code == 401


def test_deactivated_driver_token_is_403(db, make_driver):
    driver = make_driver(username="dana")
    token = DriverAuthService.issue_token(driver)
    driver.is_active = False
    db.session.commit()
    with pytest.raises(UnauthorizedError) as exc:
        DriverAuthService.verify_token(token)
    assert exc.value.code == 403


def test_missing_token_is_401(app):
    with pytest.raises(UnauthorizedError) as exc:
        DriverAuthService.verify_token(None)
    assert exc.value.code == 401
