"""
Durable storage of the zone serial and the host table
"""

import copy
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from ..core.context import AppContext
from ..core.database import create_database_engine, create_session_factory, is_database_url
from ..core.exceptions import PersistenceException
from ..models.dns import HostAddress, ZoneState


class Database(ABC):
    """
    Key-value document with 'serial' and 'hosts' keys.

    changed() reports whether the in-memory document differs from what was
    last loaded or successfully saved.
    """

    def __init__(self, context: AppContext):
        self.context = context
        self.log = context.get_logger("database")
        self._data: Dict[str, Any] = {}
        self._snapshot: Dict[str, Any] = {}

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def setdefault(self, key: str, default: Any) -> Any:
        return self._data.setdefault(key, default)

    def load(self) -> None:
        self._data = self._read()
        self._snapshot = copy.deepcopy(self._data)
        self.log.debug(f"Loaded database with {len(self._data.get('hosts', {}))} hosts")

    def save(self) -> None:
        """Persist the document; raises PersistenceException and stays dirty on failure"""
        self._write(copy.deepcopy(self._data))
        self._snapshot = copy.deepcopy(self._data)

    def changed(self) -> bool:
        return self._data != self._snapshot

    def as_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    @abstractmethod
    def _read(self) -> Dict[str, Any]:
        """Return the persisted document, {} if nothing was stored yet"""

    @abstractmethod
    def _write(self, data: Dict[str, Any]) -> None:
        """Durably store data"""


class JsonFileDatabase(Database):
    """Stores the document as a single JSON file"""

    def __init__(self, path: str | Path, context: AppContext):
        super().__init__(context)
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceException(
                f"Failed to load database {self.path}: {e}",
                details={"path": str(self.path)}
            )

    def _write(self, data: Dict[str, Any]) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=f".{self.path.name}.")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise PersistenceException(
                f"Failed to save database {self.path}: {e}",
                details={"path": str(self.path)}
            )


class SQLDatabase(Database):
    """Stores the document in an SQL database through SQLAlchemy"""

    def __init__(self, database_url: str, context: AppContext, echo: bool = False):
        super().__init__(context)
        self.database_url = database_url
        try:
            self.engine = create_database_engine(database_url, echo=echo)
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to open database {database_url}: {e}")
        self.session_factory = create_session_factory(self.engine)

    def _read(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        try:
            with self.session_factory() as session:
                state = session.get(ZoneState, 1)
                rows = session.execute(
                    select(HostAddress).order_by(HostAddress.hostname, HostAddress.position)
                ).scalars().all()
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to load database {self.database_url}: {e}")

        if state is not None:
            data["serial"] = state.serial
        if rows or state is not None:
            hosts: Dict[str, list] = {}
            for row in rows:
                hosts.setdefault(row.hostname, []).append(row.address)
            data["hosts"] = hosts
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            with self.session_factory() as session, session.begin():
                session.merge(ZoneState(id=1, serial=data.get("serial", 1)))
                session.execute(delete(HostAddress))
                for hostname, addresses in data.get("hosts", {}).items():
                    for position, address in enumerate(addresses):
                        session.add(HostAddress(hostname=hostname, position=position, address=address))
        except SQLAlchemyError as e:
            raise PersistenceException(f"Failed to save database {self.database_url}: {e}")

    def close(self) -> None:
        self.engine.dispose()


def open_database(location: str, context: AppContext, echo: bool = False) -> Database:
    """SQL database for SQLAlchemy URLs, JSON file otherwise"""
    if is_database_url(location):
        return SQLDatabase(location, context, echo=echo)
    return JsonFileDatabase(location, context)
