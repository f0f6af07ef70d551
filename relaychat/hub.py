"""Real-time hub: live websocket connections, presence and broadcast.

Presence lives in memory (username <-> connection id) and is mirrored to the
``users`` collection. Every in-memory mutation and every broadcast runs under
one lock, so all connected clients observe presence changes in the same
order. Store calls happen outside the lock; a slow one only holds up the
connection that issued it.

Broadcast is fire-and-forget: no acknowledgment, no retry. A send that fails
for one connection is logged and skipped.
"""
import asyncio
import logging
import uuid
from typing import Dict, List

from fastapi import WebSocket

from . import framing
from .models import Message
from .store import ChatStore

logger = logging.getLogger(__name__)

# client -> server
REGISTER_USER = 'registerUser'
SEND_MESSAGE = 'sendMessage'
CLEAR_CHAT = 'clearChat'

# server -> client
USER_CONNECTED = 'userConnected'
USER_DISCONNECTED = 'userDisconnected'
RECEIVE_MESSAGE = 'receiveMessage'
ERROR = 'error'


class Hub:
    def __init__(self, store: ChatStore):
        self.store = store
        self.sockets: Dict[str, WebSocket] = {}   # connection id -> websocket
        self.names: Dict[str, str] = {}           # connection id -> username
        self.presence: Dict[str, str] = {}        # username -> connection id
        self.lock = asyncio.Lock()
        self.handlers = {
            REGISTER_USER: self.register_user,
            SEND_MESSAGE: self.send_message,
            CLEAR_CHAT: self.clear_chat,
        }

    def online(self) -> List[str]:
        return list(self.presence)

    async def connect(self, websocket: WebSocket) -> str:
        sid = uuid.uuid4().hex
        async with self.lock:
            self.sockets[sid] = websocket
        logger.info('A user connected (%s)', sid)
        return sid

    async def dispatch(self, sid: str, text: str):
        try:
            event, data = framing.decode(text)
        except framing.FrameError as e:
            logger.warning('bad frame from %s: %s', sid, e)
            await self.emit(sid, ERROR, {'message': 'Invalid frame'})
            return
        handler = self.handlers.get(event)
        if handler is None:
            await self.emit(sid, ERROR, {'message': f'Unknown event: {event}'})
            return
        logger.debug('recv %s from %s', event, sid)
        await handler(sid, data if isinstance(data, dict) else {})

    async def register_user(self, sid: str, data: dict):
        username = data.get('username')
        if not isinstance(username, str) or not username.strip():
            logger.warning('registerUser from %s without a username', sid)
            return
        previous = self.names.get(sid)
        try:
            if previous is not None and previous != username:
                # this connection switches names; the old one goes offline
                await self.store.release_socket(sid)
            await self.store.upsert_user(username, sid)
        except Exception:
            logger.exception('registerUser: could not save %s', username)
            return
        async with self.lock:
            if previous is not None and previous != username:
                if self.presence.get(previous) == sid:
                    del self.presence[previous]
                self.names.pop(sid, None)
            stale = self.presence.get(username)
            if stale is not None and stale != sid:
                # last registration wins
                self.names.pop(stale, None)
            self.presence[username] = sid
            self.names[sid] = username
            logger.info('%s is connected', username)
            await self._broadcast(USER_CONNECTED, self.online())

    async def send_message(self, sid: str, data: dict):
        username = self.names.get(sid)
        if username is None:
            await self.emit(sid, ERROR, {'message': 'Unauthorized user'})
            return
        try:
            message = Message(
                sender=username,
                content=data.get('content') or '',
                file_url=data.get('fileUrl') or None,
                file_type=data.get('fileType') or None,
            )
            await self.store.insert_message(message)
        except Exception:
            logger.exception('sendMessage: could not save message from %s', username)
            return
        async with self.lock:
            await self._broadcast(RECEIVE_MESSAGE, message.to_wire())

    async def clear_chat(self, sid: str, data: dict = None):
        try:
            deleted = await self.store.clear_messages()
        except Exception:
            logger.exception('clearChat: could not delete messages')
            return
        logger.info('chat cleared by %s (%d messages)', self.names.get(sid, sid), deleted)
        async with self.lock:
            await self._broadcast(RECEIVE_MESSAGE, [])

    async def disconnect(self, sid: str):
        async with self.lock:
            self.sockets.pop(sid, None)
            username = self.names.pop(sid, None)
            if username is not None and self.presence.get(username) == sid:
                del self.presence[username]
        try:
            user = await self.store.release_socket(sid)
        except Exception:
            logger.exception('disconnect: could not release %s', sid)
            user = None
        if user is not None:
            username = user.username
        logger.info('%s disconnected', username or 'A user')
        async with self.lock:
            await self._broadcast(USER_DISCONNECTED, self.online())

    async def emit(self, sid: str, event: str, data=None):
        """Send one event to a single connection."""
        async with self.lock:
            websocket = self.sockets.get(sid)
            if websocket is None:
                return
            try:
                await websocket.send_text(framing.encode(event, data))
            except Exception as e:
                logger.debug('emit %s to %s failed: %s', event, sid, e)

    async def _broadcast(self, event: str, data):
        # caller holds self.lock
        text = framing.encode(event, data)
        for sid, websocket in list(self.sockets.items()):
            try:
                await websocket.send_text(text)
            except Exception as e:
                logger.debug('broadcast %s to %s failed: %s', event, sid, e)
