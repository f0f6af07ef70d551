import asyncio

import pytest

from relaychat import __main__ as entry
from relaychat.app import ChatContext


@pytest.mark.parametrize('reachable, code', [(True, 0), (False, 1)])
def test_check_exit_code(monkeypatch, reachable, code):
    async def ping(self):
        return reachable

    monkeypatch.setattr(ChatContext, 'ping', ping)
    assert entry.main(['--check']) == code


def test_injected_database_skips_ping(settings, database):
    chat = ChatContext(settings, database)
    chat.open()
    assert chat.client is None
    assert asyncio.run(chat.ping()) is True
