"""
Envelope for real-time frames sent over the websocket.
Format: one UTF-8 JSON text frame per event, {"type": <event name>, "data": <payload>}.
"""
import json


class FrameError(ValueError):
    pass


def encode(event, data=None):
    return json.dumps({'type': event, 'data': data}, separators=(',', ':'))


def decode(text):
    try:
        frame = json.loads(text)
    except json.JSONDecodeError as e:
        raise FrameError(f'invalid json: {e}') from e
    if not isinstance(frame, dict):
        raise FrameError('frame must be an object')
    event = frame.get('type')
    if not isinstance(event, str) or not event:
        raise FrameError('frame has no type')
    return event, frame.get('data')
