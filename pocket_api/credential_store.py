import json
import logging
import os
import stat
from dataclasses import dataclass
from typing import Any, Dict, Optional

import questionary

from .errors import (
    ConsumerKeyError,
    CredentialNotFoundError,
    MalformedCredentialError,
    PersistenceError,
)

logger = logging.getLogger(__name__)

CONSUMER_KEY_HELP_URL = "https://getpocket.com/developer/apps/"


@dataclass(frozen=True)
class Authorization:
    """Access token issued by Pocket for one user."""

    access_token: str
    username: str = ""

    @staticmethod
    def from_dict(data: Any) -> "Authorization":
        if not isinstance(data, dict):
            raise MalformedCredentialError(f"Authorization record must be an object, got {type(data).__name__}")

        access_token = data.get("access_token")
        if not isinstance(access_token, str) or not access_token.strip():
            raise MalformedCredentialError("Authorization record has no access_token")

        username = data.get("username", "")
        if username is None:
            username = ""
        if not isinstance(username, str):
            raise MalformedCredentialError("Authorization record has a non-string username")

        return Authorization(access_token=access_token, username=username)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "username": self.username,
        }


class CredentialStore:
    """Reads and writes the consumer key and the cached authorization record.

    Both files live in ``config["config_dir"]``; their names come from
    ``consumer_key_file`` and ``auth_file``. Files are created owner-only.
    """

    def __init__(self, config: Dict[str, Any]):
        self.config = config or {}
        self.config_dir = os.path.expanduser(str(self.config["config_dir"]))
        self.consumer_key_path = os.path.join(self.config_dir, str(self.config.get("consumer_key_file", "consumer_key")))
        self.auth_path = os.path.join(self.config_dir, str(self.config.get("auth_file", "auth.json")))

    def ensure_config_dir(self) -> None:
        os.makedirs(self.config_dir, mode=stat.S_IRWXU, exist_ok=True)

    # -----------------
    # Consumer key
    # -----------------

    def load_consumer_key(self) -> str:
        """Return the consumer key, prompting for it on first run.

        Only the first line of the file is used. When the file cannot be read
        the operator is asked for the key, which is then written owner-only.
        Raises ConsumerKeyError when no key can be obtained.
        """

        try:
            with open(self.consumer_key_path, "r", encoding="utf-8") as f:
                consumer_key = _first_line(f.read())
        except OSError as e:
            logger.warning("Can't read consumer key: %s", e)
        else:
            if consumer_key:
                return consumer_key
            logger.warning("Consumer key file %s is empty", self.consumer_key_path)

        consumer_key = self._prompt_consumer_key()

        try:
            self.ensure_config_dir()
            _write_private(self.consumer_key_path, consumer_key + "\n")
        except OSError as e:
            raise ConsumerKeyError(f"Failed to save consumer key to {self.consumer_key_path}: {e}") from e

        logger.info("Consumer key saved to %s", self.consumer_key_path)
        return consumer_key

    def _prompt_consumer_key(self) -> str:
        try:
            answer = questionary.text(f"Enter your consumer key (from {CONSUMER_KEY_HELP_URL}):").ask()
        except (EOFError, OSError) as e:
            raise ConsumerKeyError(f"Failed to read consumer key: {e}") from e

        # questionary returns None when the prompt is cancelled.
        consumer_key = _first_line(answer or "")
        if not consumer_key:
            raise ConsumerKeyError("No consumer key entered.")
        return consumer_key

    # -----------------
    # Authorization record
    # -----------------

    def load_authorization(self, path: Optional[str] = None) -> Authorization:
        path = path or self.auth_path

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise CredentialNotFoundError(f"No cached authorization at {path}") from e
        except json.JSONDecodeError as e:
            raise MalformedCredentialError(f"Cached authorization at {path} is not valid JSON: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise MalformedCredentialError(f"Can't read cached authorization at {path}: {e}") from e

        return Authorization.from_dict(data)

    def save_authorization(self, authorization: Authorization, path: Optional[str] = None) -> None:
        """Persist the record, replacing any previous one in a single rename."""

        path = path or self.auth_path
        temp_path = f"{path}.tmp"

        try:
            os.makedirs(os.path.dirname(path) or ".", mode=stat.S_IRWXU, exist_ok=True)
            _write_private(temp_path, json.dumps(authorization.to_dict(), indent=2) + "\n")
            os.replace(temp_path, path)
        except OSError as e:
            try:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
            except OSError:
                logger.debug("Could not remove %s", temp_path)
            raise PersistenceError(f"Failed to save authorization to {path}: {e}") from e

        logger.debug("Authorization saved to %s", path)


def _first_line(text: str) -> str:
    lines = str(text or "").splitlines()
    return lines[0].strip() if lines else ""


def _write_private(path: str, content: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, stat.S_IRUSR | stat.S_IWUSR)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
    # os.open only applies the mode on creation.
    os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)
