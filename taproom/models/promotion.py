"""Promotion model."""
import enum
import json

from sqlalchemy import Column, String, Text, Boolean, Integer, Numeric, Date, Time, DateTime, Enum
from sqlalchemy.sql import func
from taproom.database import Base, BigId


class PromotionType(enum.Enum):
    """Promotion type enum."""
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    BUY_X_GET_Y = "buy_x_get_y"


class Weekday(enum.Enum):
    """Day of week; declaration order matches ``date.weekday()``."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def ordinal(self):
        return list(Weekday).index(self)

    @classmethod
    def from_date(cls, value):
        return list(cls)[value.weekday()]

    @classmethod
    def parse(cls, value):
        """Accept a weekday name (any case) or an existing member."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f'Invalid weekday: {value!r}')
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f'Invalid weekday: {value!r}') from None


def parse_weekdays(raw):
    """
    Decode the stored ``days_of_week`` column.

    Returns None when the column is NULL (every day applies), otherwise a
    frozenset of Weekday. Raises ValueError on anything that is not a JSON
    array of weekday names.
    """
    if raw is None:
        return None
    try:
        values = json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError as e:
        raise ValueError(f'days_of_week is not valid JSON: {e}') from None
    if not isinstance(values, (list, tuple, set, frozenset)):
        raise ValueError(f'days_of_week must be a list, got {type(values).__name__}')
    return frozenset(Weekday.parse(v) for v in values)


def dump_weekdays(weekdays):
    if weekdays is None:
        return None
    days = sorted({Weekday.parse(d) for d in weekdays}, key=lambda d: d.ordinal)
    return json.dumps([d.value for d in days])


class Promotion(Base):
    """Time, date, day and usage bounded discount rule."""

    __tablename__ = 'promotion'

    id = Column(BigId, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(PromotionType, name='promotion_type'), nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    min_amount = Column(Numeric(10, 2), nullable=True)
    max_discount = Column(Numeric(10, 2), nullable=True)
    valid_from = Column(Date, nullable=False)
    valid_until = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    # JSON array of weekday names, NULL = every day
    days_of_week = Column(Text, nullable=True)
    max_uses = Column(Integer, nullable=True)
    current_uses = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @property
    def weekdays(self):
        """Parsed weekday set (None = any day). Raises ValueError on a malformed row."""
        return parse_weekdays(self.days_of_week)

    @weekdays.setter
    def weekdays(self, value):
        self.days_of_week = dump_weekdays(value)

    @property
    def has_uses_left(self):
        return self.max_uses is None or (self.current_uses or 0) < self.max_uses

    def __repr__(self):
        return f"<Promotion(id={self.id}, name='{self.name}', type={self.type.value}, value={self.value})>"

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'type': self.type.value,
            'value': str(self.value),
            'min_amount': str(self.min_amount) if self.min_amount is not None else None,
            'max_discount': str(self.max_discount) if self.max_discount is not None else None,
            'valid_from': self.valid_from.isoformat(),
            'valid_until': self.valid_until.isoformat(),
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'days_of_week': self.days_of_week,
            'max_uses': self.max_uses,
            'current_uses': self.current_uses,
            'active': self.active,
        }
