# docshare/services/name_session.py
"""
Display-name state for a commenting session.

    NameNotSet --submit_name()--> NameSet

There is no transition back. The name is kept in an injected SessionStore so
repeat visits skip the prompt and tests can use an in-memory store.
"""
import enum
import json
import os
from typing import Dict, Optional, Protocol

from docshare.errors import CommentValidationError
from docshare.logger import get_logger

logger = get_logger(__name__)

USER_NAME_KEY = "userName"


class NameState(enum.Enum):
    NameNotSet = "NameNotSet"
    NameSet = "NameSet"


class SessionStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


class InMemorySessionStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileSessionStore:
    """Key/value pairs in a small JSON file, survives restarts."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable session file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)


class FlaskSessionStore:
    """flask.session (Flask-Session backend); needs a request context."""

    def get(self, key: str) -> Optional[str]:
        from flask import session
        return session.get(key)

    def set(self, key: str, value: str) -> None:
        from flask import session
        session[key] = value
        session.modified = True


class NameSession:
    def __init__(self, store: SessionStore):
        self.store = store
        # 初始化时读取已缓存的名字
        cached = store.get(USER_NAME_KEY)
        self._user_name: Optional[str] = cached.strip() if cached and cached.strip() else None

    @property
    def state(self) -> NameState:
        return NameState.NameSet if self._user_name else NameState.NameNotSet

    @property
    def user_name(self) -> Optional[str]:
        return self._user_name

    @property
    def can_comment(self) -> bool:
        return self.state == NameState.NameSet

    def submit_name(self, user_name: str) -> str:
        """
        One-time name submission. Blank names are rejected and leave the
        state unchanged; once set, the name is not replaced.
        """
        if self.state == NameState.NameSet:
            return self._user_name

        if not user_name or not user_name.strip():
            raise CommentValidationError("User name must not be empty")

        self._user_name = user_name.strip()
        self.store.set(USER_NAME_KEY, self._user_name)
        return self._user_name

    def require_name(self) -> str:
        if not self.can_comment:
            raise CommentValidationError("Enter your name before commenting")
        return self._user_name
