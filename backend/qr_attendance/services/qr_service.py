# backend/qr_attendance/services/qr_service.py
"""QR code token encoding, decoding and rendering service."""
import base64
import io
import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, time, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import qrcode
from PIL import Image

from qr_attendance.services.schedule_service import WeekDay, format_time, parse_time

logger = logging.getLogger(__name__)

# Largest payload a version 40 QR code can carry in byte mode, rounded up
MAX_PAYLOAD_LENGTH = 4096

REQUIRED_FIELDS = (
    'session_id', 'subject', 'class_name', 'day',
    'start_time', 'end_time', 'issued_at', 'nonce'
)


@dataclass(frozen=True)
class SessionDescriptor:
    """One scheduled class meeting that a QR code can be issued for."""
    session_id: str
    subject: str
    class_name: str
    start_time: time
    end_time: time
    day_of_week: WeekDay

    def __post_init__(self):
        for name in ('session_id', 'subject', 'class_name'):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty string")

        for name in ('start_time', 'end_time'):
            value = getattr(self, name)
            if not isinstance(value, time):
                raise ValueError(f"{name} must be a time of day")
            if value.second or value.microsecond or value.tzinfo is not None:
                raise ValueError(f"{name} must be a naive time with minute precision")

        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")

        if not isinstance(self.day_of_week, WeekDay):
            raise ValueError("day_of_week must be a WeekDay")


@dataclass(frozen=True)
class AttendanceToken:
    """Snapshot of a session plus issuance data, carried inside the QR code."""
    session_id: str
    subject: str
    class_name: str
    day_of_week: WeekDay
    start_time: time
    end_time: time
    issued_at: datetime
    nonce: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'session_id': self.session_id,
            'subject': self.subject,
            'class_name': self.class_name,
            'day': self.day_of_week.name,
            'start_time': format_time(self.start_time),
            'end_time': format_time(self.end_time),
            'issued_at': self.issued_at.isoformat(),
            'nonce': self.nonce
        }


@dataclass(frozen=True)
class EncodedToken:
    token: AttendanceToken
    payload: str


class DecodeErrorKind(Enum):
    MALFORMED = 'malformed'
    MISSING_FIELD = 'missing_field'


@dataclass(frozen=True)
class DecodeError:
    kind: DecodeErrorKind
    message: str
    field: Optional[str] = None


class _FieldError(Exception):
    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


def _generate_nonce(issued_at: datetime) -> str:
    millis = int(issued_at.timestamp() * 1000)
    return f"{millis:x}-{secrets.token_hex(8)}"


def _require_string(data: Dict[str, Any], field: str) -> str:
    value = data[field]
    if not isinstance(value, str) or not value.strip():
        raise _FieldError(field, f"Field {field} must be a non-empty string")
    return value


def _require_time(data: Dict[str, Any], field: str) -> time:
    try:
        return parse_time(data[field])
    except ValueError:
        raise _FieldError(field, f"Field {field} must be a time in HH:MM format") from None


def _token_from_dict(data: Dict[str, Any]) -> AttendanceToken:
    for field in REQUIRED_FIELDS:
        if field not in data:
            raise _FieldError(field, f"Missing field: {field}")

    try:
        day_of_week = WeekDay.parse(data['day'])
    except ValueError:
        raise _FieldError('day', "Field day must be a weekday name") from None

    start_time = _require_time(data, 'start_time')
    end_time = _require_time(data, 'end_time')
    if start_time >= end_time:
        raise _FieldError('end_time', "Field end_time must be after start_time")

    issued_raw = _require_string(data, 'issued_at')
    try:
        issued_at = datetime.fromisoformat(issued_raw)
    except ValueError:
        raise _FieldError('issued_at', "Field issued_at must be an ISO-8601 timestamp") from None
    if issued_at.tzinfo is None:
        issued_at = issued_at.replace(tzinfo=timezone.utc)

    return AttendanceToken(
        session_id=_require_string(data, 'session_id'),
        subject=_require_string(data, 'subject'),
        class_name=_require_string(data, 'class_name'),
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        issued_at=issued_at,
        nonce=_require_string(data, 'nonce')
    )


class QRService:
    """Service for QR code operations."""

    @staticmethod
    def encode(session: SessionDescriptor, now: Optional[datetime] = None) -> EncodedToken:
        """
        Issue a fresh attendance token for a session.
        Every call produces a new nonce, even for the same session.
        """
        if not isinstance(session, SessionDescriptor):
            raise TypeError("encode() expects a SessionDescriptor")

        issued_at = now or datetime.now(timezone.utc)
        if issued_at.tzinfo is None:
            issued_at = issued_at.replace(tzinfo=timezone.utc)

        token = AttendanceToken(
            session_id=session.session_id,
            subject=session.subject,
            class_name=session.class_name,
            day_of_week=session.day_of_week,
            start_time=session.start_time,
            end_time=session.end_time,
            issued_at=issued_at,
            nonce=_generate_nonce(issued_at)
        )

        payload = json.dumps(token.to_dict(), separators=(',', ':'))
        logger.debug("Issued token %s for session %s", token.nonce, token.session_id)

        return EncodedToken(token=token, payload=payload)

    @staticmethod
    def decode(payload: Any) -> Tuple[Optional[AttendanceToken], Optional[DecodeError]]:
        """
        Decode a scanned QR payload.
        Returns: (token, None) on success or (None, error)
        """
        if not isinstance(payload, str) or not payload.strip():
            return None, DecodeError(DecodeErrorKind.MALFORMED, "QR code is empty")

        if len(payload) > MAX_PAYLOAD_LENGTH:
            return None, DecodeError(DecodeErrorKind.MALFORMED, "QR code payload is too large")

        try:
            data = json.loads(payload)
        except (ValueError, RecursionError):
            return None, DecodeError(DecodeErrorKind.MALFORMED, "Invalid QR code format")

        if not isinstance(data, dict):
            return None, DecodeError(DecodeErrorKind.MALFORMED, "Invalid QR code format")

        try:
            return _token_from_dict(data), None
        except _FieldError as e:
            return None, DecodeError(DecodeErrorKind.MISSING_FIELD, str(e), field=e.field)

    @staticmethod
    def render_image(
        payload: str,
        width: int = 300,
        margin: int = 2,
        fill_color: str = '#1e40af',
        back_color: str = '#ffffff'
    ) -> bytes:
        """Render a payload as a ``width`` x ``width`` PNG with a ``margin`` module quiet zone."""
        if width < 21 or margin < 0:
            raise ValueError("QR image width must be at least 21 pixels and margin non-negative")

        qr = qrcode.QRCode(
            version=None,  # Auto-determine size
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=1,
            border=margin,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        # Largest whole-pixel module size that fits, then scale to exact width
        qr.box_size = max(1, width // (qr.modules_count + 2 * margin))

        img = qr.make_image(fill_color=fill_color, back_color=back_color).get_image()
        img = img.convert('RGB')
        if img.size != (width, width):
            img = img.resize((width, width), Image.NEAREST)

        buffered = io.BytesIO()
        img.save(buffered, format='PNG')
        return buffered.getvalue()

    @staticmethod
    def to_data_url(png: bytes) -> str:
        """Wrap PNG bytes as a data URL for inline display."""
        return f"data:image/png;base64,{base64.b64encode(png).decode()}"
