"""
Access code lifecycle: minting, expiry computation and gate verification.

Codes are six random digits scoped to one address. Two addresses may hold
the same code; verification always matches on (code, address).
"""
import calendar
import logging
import secrets
from datetime import datetime, time, timedelta, timezone as dt_timezone
from typing import Optional, Union
from uuid import UUID

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.core.exceptions import ValidationError
from .models import AllowedVisitor

logger = logging.getLogger(__name__)

CODE_MIN = 100000
CODE_SPAN = 900000  # codes fall in [100000, 999999]


class ExpirationOption:
    HOURS_24 = "24h"
    WEEK = "1w"
    MONTH = "1m"
    CUSTOM = "custom"

    ALL = (HOURS_24, WEEK, MONTH, CUSTOM)


def add_calendar_month(value: datetime) -> datetime:
    """Same day next month, clamped to that month's last day (Jan 31 -> Feb 28/29)."""
    year = value.year + value.month // 12
    month = value.month % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _parse_custom_date(custom_date: Union[str, datetime, None]) -> Optional[datetime]:
    if custom_date is None or custom_date == "":
        return None
    if isinstance(custom_date, datetime):
        parsed = custom_date
    else:
        try:
            parsed = parse_datetime(custom_date)
            if parsed is None:
                day = parse_date(custom_date)
                parsed = datetime.combine(day, time.min) if day else None
        except ValueError:
            return None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


class AccessCodeManager:

    @staticmethod
    def generate_code() -> str:
        return str(secrets.randbelow(CODE_SPAN) + CODE_MIN)

    @staticmethod
    def compute_expiration(
        option: str,
        custom_date: Union[str, datetime, None] = None,
        now: Optional[datetime] = None,
    ) -> datetime:
        """
        Expiry timestamp for a preset option.

        `custom` uses custom_date (ISO datetime, or a date meaning midnight
        UTC) and falls back to 24 hours when it is missing or unparseable.
        """
        now = now or timezone.now()

        if option == ExpirationOption.HOURS_24:
            return now + timedelta(hours=24)
        if option == ExpirationOption.WEEK:
            return now + timedelta(days=7)
        if option == ExpirationOption.MONTH:
            return add_calendar_month(now)
        if option == ExpirationOption.CUSTOM:
            parsed = _parse_custom_date(custom_date)
            if parsed is None:
                logger.info(f"Custom expiration '{custom_date}' unusable, defaulting to 24h")
                return now + timedelta(hours=24)
            return parsed

        raise ValidationError(
            f"Invalid expiration option '{option}'. Use one of: {', '.join(ExpirationOption.ALL)}"
        )

    @staticmethod
    def is_named_visitor(visitor: AllowedVisitor) -> bool:
        return bool(visitor.first_name and visitor.last_name)

    def verify(self, code: str, address_id: UUID, now: Optional[datetime] = None) -> Optional[AllowedVisitor]:
        """
        Active, unexpired visitor holding `code` at `address_id`, or None.

        A match stamps last_used; codes stay valid for repeat use until they
        expire or are revoked.
        """
        now = now or timezone.now()
        code = (code or "").strip()
        if not code:
            return None

        visitor = (
            AllowedVisitor.objects
            .filter(access_code=code, address_id=address_id, is_active=True, expires_at__gt=now)
            .order_by('-created_at')
            .first()
        )
        if visitor is None:
            logger.info(f"Access code rejected for address {address_id}")
            return None

        AllowedVisitor.objects.filter(id=visitor.id).update(last_used=now)
        visitor.last_used = now
        logger.info(f"Access code accepted for visitor {visitor.id}")
        return visitor
