from fastapi import FastAPI, Request, WebSocket
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from typing import Optional
import logging

# Motor for MongoDB
from motor.motor_asyncio import AsyncIOMotorClient

from .config import Settings
from .hub import ERROR, Hub
from .store import ChatStore
from .uploads import URL_PREFIX, FileStore

logger = logging.getLogger(__name__)


class ChatContext:
    """Everything the handlers share, built once per app instance.

    ``database`` may be passed in (tests hand over an in-memory one); otherwise
    a Motor client is created on startup and closed on shutdown.
    """

    def __init__(self, settings: Settings, database=None):
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = None
        self.files = FileStore(settings.upload_dir)
        self.db = None
        self.store: Optional[ChatStore] = None
        self.hub: Optional[Hub] = None
        if database is not None:
            self._bind(database)

    def _bind(self, database):
        self.db = database
        self.store = ChatStore(database)
        self.hub = Hub(self.store)

    def open(self, **client_options):
        """Create the Motor client unless a database was handed in."""
        if self.db is None:
            self.client = AsyncIOMotorClient(self.settings.mongodb_uri, **client_options)
            self._bind(self.client[self.settings.mongodb_db])

    async def ping(self) -> bool:
        if self.client is None:
            return True
        try:
            await self.client.admin.command('ping')
        except Exception:
            logger.exception('MongoDB connection failed (%s)', self.settings.mongodb_uri)
            return False
        logger.info('MongoDB connected')
        return True

    async def start(self):
        self.open()
        if not await self.ping():
            # keep serving; requests fail one by one until the store is back
            return
        try:
            await self.store.ensure_indexes()
            cleared = await self.store.reset_presence()
            if cleared:
                logger.info('cleared %d stale online markers', cleared)
        except Exception:
            logger.exception('could not prepare collections')

    async def stop(self):
        if self.client is not None:
            self.client.close()
            self.client = None


def create_app(settings: Optional[Settings] = None, database=None) -> FastAPI:
    settings = settings or Settings.from_env()
    chat = ChatContext(settings, database)
    chat.files.ensure_dir()

    app = FastAPI(title='RelayChat')
    app.state.chat = chat

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=['*'],
        allow_headers=['*'],
    )

    @app.on_event('startup')
    async def startup_event():
        await chat.start()

    @app.on_event('shutdown')
    async def shutdown_event():
        await chat.stop()

    @app.get('/')
    async def index():
        return PlainTextResponse('RelayChat backend running. Connect via WebSocket at /ws')

    @app.get('/messages')
    async def list_messages():
        try:
            messages = await chat.store.list_messages()
        except Exception as e:
            logger.exception('GET /messages failed')
            return JSONResponse({'error': str(e)}, status_code=500)
        return JSONResponse([m.to_wire() for m in messages])

    @app.get('/online-users')
    async def online_users():
        try:
            names = await chat.store.online_usernames()
        except Exception as e:
            logger.exception('GET /online-users failed')
            return JSONResponse({'error': str(e)}, status_code=500)
        return JSONResponse(names)

    @app.post('/upload')
    async def upload(request: Request):
        # parsed by hand so a missing or non-file "file" part is a 400, not a 422
        form = await request.form()
        file = form.get('file')
        if not isinstance(file, UploadFile):
            return JSONResponse({'error': 'No file uploaded'}, status_code=400)
        data = await file.read()
        saved = await run_in_threadpool(chat.files.save, file.filename, data, file.content_type)
        return JSONResponse(saved)

    app.mount(URL_PREFIX, StaticFiles(directory=chat.files.directory), name='uploads')

    @app.websocket('/ws')
    async def websocket_endpoint(websocket: WebSocket):
        await websocket.accept()
        hub = chat.hub
        sid = await hub.connect(websocket)
        try:
            while True:
                message = await websocket.receive()
                if message['type'] == 'websocket.disconnect':
                    break
                text = message.get('text')
                if text is None:
                    # binary frames carry nothing we understand
                    await hub.emit(sid, ERROR, {'message': 'Invalid frame'})
                    continue
                await hub.dispatch(sid, text)
        finally:
            await hub.disconnect(sid)

    return app
