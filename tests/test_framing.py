import pytest

from relaychat import framing


def test_encode_is_compact():
    assert framing.encode('userConnected', ['alice']) == '{"type":"userConnected","data":["alice"]}'


def test_encode_without_payload():
    assert framing.encode('clearChat') == '{"type":"clearChat","data":null}'


def test_decode():
    assert framing.decode('{"type":"sendMessage","data":{"content":"hi"}}') == ('sendMessage', {'content': 'hi'})
    assert framing.decode('{"type":"clearChat"}') == ('clearChat', None)


@pytest.mark.parametrize('text', [
    'not json',
    '[1, 2]',
    '{"data": {}}',
    '{"type": 3}',
    '{"type": ""}',
])
def test_decode_rejects(text):
    with pytest.raises(framing.FrameError):
        framing.decode(text)
