"""Flat on-disk store for files uploaded over HTTP."""
import logging
import mimetypes
import os
import time
from typing import Dict, Optional

logger = logging.getLogger(__name__)

URL_PREFIX = '/uploads'


class FileStore:
    def __init__(self, directory):
        self.directory = os.path.abspath(directory)

    def ensure_dir(self):
        os.makedirs(self.directory, exist_ok=True)

    def save(self, filename: Optional[str], data: bytes, content_type: Optional[str] = None) -> Dict[str, str]:
        """Write ``data`` under a generated ``<ms timestamp><ext>`` name.

        The name is claimed with an exclusive create; when two uploads land in
        the same millisecond the later one moves to the next free number.
        """
        ext = os.path.splitext(filename or '')[1]
        stamp = int(time.time() * 1000)
        while True:
            name = f'{stamp}{ext}'
            try:
                with open(os.path.join(self.directory, name), 'xb') as f:
                    f.write(data)
                break
            except FileExistsError:
                stamp += 1
        file_type = detect_type(filename, content_type)
        logger.info('stored upload %r as %s (%d bytes, %s)', filename, name, len(data), file_type)
        return {'fileUrl': f'{URL_PREFIX}/{name}', 'fileType': file_type}


def detect_type(filename, content_type=None):
    if content_type and content_type != 'application/octet-stream':
        return content_type
    guessed, _ = mimetypes.guess_type(filename or '')
    return guessed or content_type or 'application/octet-stream'
