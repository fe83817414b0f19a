from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    The models describe the backend's persisted schema; they are compiled to
    DDL by paddle_booking.db.schema and never used for direct sessions, since
    all runtime access goes through the backend's REST API.
    """

    pass
