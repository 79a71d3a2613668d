"""Tests for QR token encoding, decoding and rendering."""
import io
import json
from datetime import datetime, time, timedelta, timezone

import pytest
from PIL import Image

from qr_attendance.services.qr_service import (
    MAX_PAYLOAD_LENGTH, AttendanceToken, DecodeErrorKind, QRService, SessionDescriptor
)
from qr_attendance.services.schedule_service import WeekDay


def make_session(**overrides):
    values = {
        'session_id': '1',
        'subject': 'Computer Science 101',
        'class_name': 'CS-A',
        'start_time': time(9, 0),
        'end_time': time(10, 30),
        'day_of_week': WeekDay.MONDAY
    }
    values.update(overrides)
    return SessionDescriptor(**values)


def valid_fields():
    return json.loads(QRService.encode(make_session()).payload)


@pytest.mark.parametrize('session', [
    make_session(),
    make_session(session_id='lecture-42', subject='Data Structures', class_name='CS-B',
                 start_time=time(11, 0), end_time=time(12, 30), day_of_week=WeekDay.FRIDAY),
    make_session(subject='Álgebra, sección 2', class_name='MAT/2', start_time=time(0, 0),
                 end_time=time(23, 59), day_of_week=WeekDay.SUNDAY),
])
def test_round_trip(session):
    """Decoding an encoded payload gives back the issued token."""
    encoded = QRService.encode(session)
    token, error = QRService.decode(encoded.payload)

    assert error is None
    assert token == encoded.token
    assert token.session_id == session.session_id
    assert token.start_time == session.start_time
    assert token.day_of_week == session.day_of_week


def test_round_trip_with_explicit_timezone():
    """Issue times in other timezones survive the round trip."""
    issued_at = datetime(2024, 1, 15, 9, 5, 30, 123456, tzinfo=timezone(timedelta(hours=3)))
    encoded = QRService.encode(make_session(), now=issued_at)

    token, error = QRService.decode(encoded.payload)

    assert error is None
    assert token == encoded.token
    assert token.issued_at == issued_at


def test_every_issuance_has_fresh_nonce():
    """Regenerating a QR for the same session yields a different token."""
    session = make_session()
    nonces = {QRService.encode(session).token.nonce for _ in range(50)}
    assert len(nonces) == 50


def test_payload_is_compact_json():
    encoded = QRService.encode(make_session())
    data = json.loads(encoded.payload)

    assert set(data) == {
        'session_id', 'subject', 'class_name', 'day',
        'start_time', 'end_time', 'issued_at', 'nonce'
    }
    assert data['day'] == 'MONDAY'
    assert data['start_time'] == '09:00'
    assert data['end_time'] == '10:30'
    assert ' ' not in encoded.payload.replace('Computer Science 101', '')


def test_naive_issue_time_is_treated_as_utc():
    encoded = QRService.encode(make_session(), now=datetime(2024, 1, 15, 9, 0))
    assert encoded.token.issued_at.tzinfo is not None
    assert encoded.token.issued_at.utcoffset() == timedelta(0)


@pytest.mark.parametrize('payload', ['', '   ', 'not json', '[]', '123', '"text"', 'null', None, 42, b'{}'])
def test_decode_malformed(payload):
    """Unparseable or non-object payloads are malformed, never exceptions."""
    token, error = QRService.decode(payload)
    assert token is None
    assert error.kind == DecodeErrorKind.MALFORMED


def test_decode_empty_object_is_missing_field():
    token, error = QRService.decode('{}')
    assert token is None
    assert error.kind == DecodeErrorKind.MISSING_FIELD
    assert error.field == 'session_id'


def test_decode_oversized_payload():
    token, error = QRService.decode('{"a":"' + 'x' * MAX_PAYLOAD_LENGTH + '"}')
    assert token is None
    assert error.kind == DecodeErrorKind.MALFORMED


def test_decode_deeply_nested_payload():
    token, error = QRService.decode('[' * 2000 + ']' * 2000)
    assert token is None
    assert error.kind == DecodeErrorKind.MALFORMED


@pytest.mark.parametrize('field', [
    'session_id', 'subject', 'class_name', 'day', 'start_time', 'end_time', 'issued_at', 'nonce'
])
def test_decode_missing_field(field):
    data = valid_fields()
    del data[field]

    token, error = QRService.decode(json.dumps(data))

    assert token is None
    assert error.kind == DecodeErrorKind.MISSING_FIELD
    assert error.field == field


@pytest.mark.parametrize('field, value', [
    ('session_id', 1),
    ('subject', ''),
    ('class_name', None),
    ('day', 'Funday'),
    ('day', 3),
    ('start_time', '25:00'),
    ('start_time', 900),
    ('end_time', '9am'),
    ('end_time', '08:00'),
    ('issued_at', 'yesterday'),
    ('nonce', ['a']),
])
def test_decode_wrong_semantic_type(field, value):
    """Fields that are present but invalid count as missing."""
    data = valid_fields()
    data[field] = value

    token, error = QRService.decode(json.dumps(data))

    assert token is None
    assert error.kind == DecodeErrorKind.MISSING_FIELD


def test_decode_ignores_unknown_fields():
    data = valid_fields()
    data['extra'] = {'anything': True}

    token, error = QRService.decode(json.dumps(data))

    assert error is None
    assert isinstance(token, AttendanceToken)


def test_decode_accepts_lowercase_day_and_naive_timestamp():
    data = valid_fields()
    data['day'] = 'monday'
    data['issued_at'] = '2024-01-15T09:00:00'

    token, error = QRService.decode(json.dumps(data))

    assert error is None
    assert token.day_of_week == WeekDay.MONDAY
    assert token.issued_at == datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize('overrides', [
    {'subject': ''},
    {'class_name': '   '},
    {'session_id': 7},
    {'start_time': time(10, 30), 'end_time': time(9, 0)},
    {'start_time': time(9, 0), 'end_time': time(9, 0)},
    {'start_time': time(9, 0, 30)},
    {'day_of_week': 'MONDAY'},
])
def test_invalid_session_descriptor(overrides):
    with pytest.raises(ValueError):
        make_session(**overrides)


def test_render_image_default_size():
    """Rendered QR codes are PNGs of the requested width."""
    payload = QRService.encode(make_session()).payload
    png = QRService.render_image(payload)

    assert png.startswith(b'\x89PNG\r\n\x1a\n')
    with Image.open(io.BytesIO(png)) as img:
        assert img.size == (300, 300)


def test_render_image_custom_size_and_margin():
    payload = QRService.encode(make_session()).payload
    png = QRService.render_image(payload, width=512, margin=4)

    with Image.open(io.BytesIO(png)) as img:
        assert img.size == (512, 512)
        # Quiet zone is background colour
        assert img.convert('RGB').getpixel((0, 0)) == (255, 255, 255)


def test_render_image_rejects_bad_dimensions():
    with pytest.raises(ValueError):
        QRService.render_image('payload', width=10)
    with pytest.raises(ValueError):
        QRService.render_image('payload', margin=-1)


def test_data_url():
    url = QRService.to_data_url(b'\x89PNG')
    assert url == 'data:image/png;base64,iVBORw=='
