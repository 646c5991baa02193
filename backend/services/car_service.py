import logging
from backend.extensions import db
from backend.models.car import Car
from backend.services.errors import ValidationError, NotFoundError, UpstreamFailure
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

EDITABLE_FIELDS = ('plate_number', 'make', 'model', 'year', 'color', 'is_active', 'meta')


def _columns(data):
    """Request keys to column attributes; "metadata" is stored on `meta`."""
    data = dict(data)
    if 'metadata' in data:
        data['meta'] = data.pop('metadata')
    return {k: v for k, v in data.items() if k in EDITABLE_FIELDS}


class CarService:
    @staticmethod
    def get_all(include_inactive=False):
        try:
            query = Car.query if include_inactive else Car.query_active()
            return query.order_by(Car.plate_number.asc()).all()
        except SQLAlchemyError as e:
            logging.error(f"Error fetching cars: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch cars. Please try again later.")

    @staticmethod
    def get_by_id(car_id):
        try:
            car = db.session.get(Car, car_id)
        except SQLAlchemyError as e:
            logging.error(f"Error fetching car: {e}", exc_info=True)
            raise UpstreamFailure("Could not fetch car. Please try again later.")
        if not car:
            raise NotFoundError("Car not found")
        return car

    @staticmethod
    def create(data):
        try:
            car = Car(**_columns(data))
            db.session.add(car)
            db.session.commit()
            return car
        except IntegrityError as e:
            db.session.rollback()
            logging.warning(f"Car create conflict: {e}")
            raise ValidationError("A car with this plate number already exists")
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error creating car: {e}", exc_info=True)
            raise UpstreamFailure("Could not create car. Please try again later.")

    @staticmethod
    def update(car_id, data):
        car = CarService.get_by_id(car_id)
        try:
            for key, value in _columns(data).items():
                setattr(car, key, value)
            db.session.commit()
            return car
        except IntegrityError as e:
            db.session.rollback()
            logging.warning(f"Car update conflict: {e}")
            raise ValidationError("A car with this plate number already exists")
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error updating car: {e}", exc_info=True)
            raise UpstreamFailure("Could not update car. Please try again later.")

    @staticmethod
    def delete(car_id):
        car = CarService.get_by_id(car_id)
        try:
            car.is_active = False
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            logging.error(f"Error deleting car: {e}", exc_info=True)
            raise UpstreamFailure("Could not delete car. Please try again later.")
