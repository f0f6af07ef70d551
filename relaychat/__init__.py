"""RelayChat: real-time chat backend on FastAPI websockets and MongoDB."""

__version__ = '0.1.0'
