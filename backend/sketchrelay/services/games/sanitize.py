"""Validation of raw turn submissions and display names.

Everything a client sends ends up here before it touches the database.
Payloads are validated once and re-encoded in a canonical form, so the
rest of the game code never has to parse client input.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Optional, Union

from sketchrelay.errors import InvalidInput
from sketchrelay.models import TurnType


@dataclass(frozen=True)
class TextPayload:
    text: str


@dataclass(frozen=True)
class DrawingPayload:
    width: int
    height: int
    # Little-endian int16 stream of x, y pairs; pen-up marks separate strokes
    path_data: bytes


TurnPayload = Union[TextPayload, DrawingPayload]


def sanitize_name(raw, max_length: int) -> str:
    if raw is None:
        raw = ''
    if not isinstance(raw, str):
        raise InvalidInput('Name must be a string')
    name = raw.strip()[:max_length].strip()
    if not name:
        raise InvalidInput('Name is required')
    return name


def sanitize_text(raw, max_length: int) -> TextPayload:
    if not isinstance(raw, str):
        raise InvalidInput('Description must be a string')
    text = raw.strip()
    if not text:
        raise InvalidInput('Description is required')
    if len(text) > max_length:
        raise InvalidInput(f'Description must be at most {max_length} characters')
    return TextPayload(text=text)


def _dimension(value, label: str, max_size: int) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f'Drawing {label} must be an integer')
    if value < 1 or value > max_size:
        raise InvalidInput(f'Drawing {label} must be between 1 and {max_size}')
    return value


def sanitize_drawing(raw, max_size: int, max_bytes: int) -> DrawingPayload:
    """Validate a drawing submission.

    ``raw`` is either a dict or its JSON text:
    ``{"width": int, "height": int, "data": "<base64 path data>"}``.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise InvalidInput('Drawing data is not valid JSON')
    if not isinstance(raw, dict):
        raise InvalidInput('Drawing data must be an object')

    width = _dimension(raw.get('width'), 'width', max_size)
    height = _dimension(raw.get('height'), 'height', max_size)

    encoded = raw.get('data')
    if not isinstance(encoded, str) or not encoded:
        raise InvalidInput('Drawing path data is required')
    try:
        path_data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidInput('Drawing path data is not valid base64')
    if not path_data:
        raise InvalidInput('Drawing path data is required')
    if len(path_data) % 2:
        raise InvalidInput('Drawing path data must be a whole number of int16 values')
    if len(path_data) > max_bytes:
        raise InvalidInput(f'Drawing path data exceeds {max_bytes} bytes')

    return DrawingPayload(width=width, height=height, path_data=path_data)


def sanitize_turn(turn_type: TurnType, raw, config) -> TurnPayload:
    """Validate ``raw`` for a turn of ``turn_type`` using limits from ``config``."""
    if turn_type == TurnType.DRAW:
        return sanitize_drawing(
            raw,
            max_size=int(config.get('MAX_IMG_SIZE', 6000)),
            max_bytes=int(config.get('MAX_DRAWING_BYTES', 512 * 1024)),
        )
    if turn_type == TurnType.DESCRIBE:
        return sanitize_text(raw, max_length=int(config.get('MAX_DESCRIPTION_LENGTH', 100)))
    raise InvalidInput('Skip turns cannot be submitted')


def encode_payload(payload: Optional[TurnPayload]) -> Optional[str]:
    if payload is None:
        return None
    if isinstance(payload, TextPayload):
        return payload.text
    return json.dumps(payload_to_wire(payload), separators=(',', ':'))


def decode_payload(turn_type: int, data: Optional[str]) -> Optional[TurnPayload]:
    """Inverse of encode_payload for stored turn data."""
    if turn_type == TurnType.SKIP or data is None:
        return None
    if turn_type == TurnType.DESCRIBE:
        return TextPayload(text=data)
    stored = json.loads(data)
    return DrawingPayload(
        width=stored['width'],
        height=stored['height'],
        path_data=base64.b64decode(stored['data']),
    )


def payload_to_wire(payload: Optional[TurnPayload]):
    """Client form of a decoded payload: the text itself, or the drawing as an object."""
    if payload is None:
        return None
    if isinstance(payload, TextPayload):
        return payload.text
    return {
        'width': payload.width,
        'height': payload.height,
        'data': base64.b64encode(payload.path_data).decode('ascii'),
    }
