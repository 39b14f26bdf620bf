"""Persistent lifecycle record for a managed home directory"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from .errors import LockFileCorrupt

logger = logging.getLogger(__name__)

LOCK_FILE_NAME = "localnet.lock"


class LockFile:
    """
    Initialization flag, genesis configuration and node pid of one home
    directory.

    The record starts uninitialized and only becomes initialized through
    mark_initialized(), which stores the configuration in the same write.
    Every mutation is written to disk before it returns.
    """

    def __init__(self, file_name):
        self.file_name = Path(file_name)
        self.data: Dict = {"initialized": False}
        self.load()

    def load(self):
        if self.file_name.exists():
            try:
                with open(self.file_name, 'r') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                raise LockFileCorrupt(self.file_name, e)
            if not isinstance(data, dict):
                raise LockFileCorrupt(self.file_name, "expected a JSON object")
            self.data = data
            self.data.setdefault("initialized", False)
        else:
            self.data = {"initialized": False}
            self.save()

    def save(self):
        self.file_name.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.file_name.parent, prefix=f".{self.file_name.name}.")
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(self.data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.file_name)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    @property
    def initialized(self) -> bool:
        return bool(self.data.get("initialized", False))

    @property
    def pid(self) -> Optional[int]:
        return self.data.get("pid")

    @pid.setter
    def pid(self, pid: Optional[int]):
        if pid is None:
            self.data.pop("pid", None)
        else:
            self.data["pid"] = pid
        self.save()

    @property
    def config(self) -> Optional[Dict]:
        return self.data.get("config")

    def mark_initialized(self, config: Dict):
        self.data["initialized"] = True
        self.data["config"] = config
        self.save()
        logger.debug(f"Marked {self.file_name} initialized")

    def discard(self):
        """Forget in-memory state after the file was removed along with its directory"""
        self.data = {"initialized": False}
