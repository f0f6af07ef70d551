import logging
import os
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel


class Settings(BaseModel):
    mongodb_uri: str = 'mongodb://localhost:27017'
    mongodb_db: str = 'relaychat'
    host: str = '0.0.0.0'
    port: int = 5000
    upload_dir: str = 'uploads'
    cors_origins: List[str] = ['*']
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Settings':
        # variables already in the environment take precedence over .env
        load_dotenv()
        env = os.environ
        return cls(
            mongodb_uri=env.get('MONGODB_URI') or env.get('MONGO_URI') or 'mongodb://localhost:27017',
            mongodb_db=env.get('MONGODB_DB', 'relaychat'),
            host=env.get('HOST', '0.0.0.0'),
            port=int(env.get('PORT', '5000')),
            upload_dir=env.get('UPLOAD_DIR', 'uploads'),
            cors_origins=[o.strip() for o in env.get('CORS_ORIGINS', '*').split(',') if o.strip()],
            log_level=env.get('LOG_LEVEL', 'INFO').upper(),
        )


def configure_logging(level='INFO'):
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
