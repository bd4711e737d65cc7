"""File-backed API token store with an explicit set/get/clear lifecycle."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from storyclip.config import get_home_dir

logger = logging.getLogger(__name__)

CREDENTIALS_FILENAME = "credentials.json"
TOKEN_ENV_VAR = "CLICKUP_API_TOKEN"


class TokenStore:
    """Holds the issue-tracker token for one StoryClip home directory.

    Lookup order for :meth:`get` is the stored file, then the
    ``CLICKUP_API_TOKEN`` environment variable.
    """

    def __init__(self, home_dir: Path | None = None) -> None:
        self.home_dir = home_dir if home_dir is not None else get_home_dir()

    @property
    def path(self) -> Path:
        return self.home_dir / CREDENTIALS_FILENAME

    def get(self) -> Optional[str]:
        token = self._read().get("clickup_token")
        if token:
            return token
        return os.environ.get(TOKEN_ENV_VAR) or None

    def set(self, token: str) -> None:
        token = token.strip()
        if not token:
            raise ValueError("token must not be empty")
        data = self._read()
        data["clickup_token"] = token
        self._write(data)

    def clear(self) -> None:
        """Remove the stored token. The environment variable is left untouched."""
        data = self._read()
        if data.pop("clickup_token", None) is None:
            return
        self._write(data)

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("Ignoring unreadable credential store %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.home_dir.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(data, indent=2).encode("utf-8")
        fd, tmp_path = tempfile.mkstemp(dir=self.home_dir, suffix=".cred.tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                os.fchmod(fh.fileno(), 0o600)
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
