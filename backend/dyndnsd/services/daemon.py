"""
Commit engine: validates update requests, classifies changes and commits
them to the database and the nameserver
"""

import threading
from typing import Dict, List

from ..core import metrics
from ..core.config import UserConfig
from ..core.context import AppContext
from ..core.exceptions import PersistenceException, PropagationException
from ..core.security import user_allowed
from ..core.validators import hostname_valid
from ..schemas.dns import ChangeOutcome, ResponseStatus, UpdateRequest, UpdateResult
from .bind_service import Propagator
from .change_classifier import process_changes
from .database_service import Database
from .ip_extractor import extract_myips


class Daemon:
    """
    Owns the host table for the lifetime of the process.

    Requests are processed one at a time: the lock spans address
    extraction, classification, persistence and propagation, so the serial
    always describes exactly the state that was last saved.
    """

    def __init__(
        self,
        domain: str,
        users: Dict[str, UserConfig],
        db: Database,
        updater: Propagator,
        context: AppContext
    ):
        self.domain = domain
        self.users = users
        self.db = db
        self.updater = updater
        self.context = context
        self.log = context.get_logger("daemon")
        self.security_log = context.get_logger("security")
        self.lock = threading.Lock()

        self.db.load()
        self.db.setdefault("serial", 1)
        self.db.setdefault("hosts", {})
        if self.db.changed():
            self.db.save()
            self._propagate()

    @property
    def serial(self) -> int:
        return self.db["serial"]

    @property
    def hosts(self) -> Dict[str, List[str]]:
        return self.db["hosts"]

    def authorized(self, username: str, password: str) -> bool:
        """Check credentials; failures are logged and metered"""
        allow = user_allowed(username, password, self.users)
        if not allow:
            self.security_log.warning(f"Login failed for {username}")
            self.context.mark(metrics.AUTH_FAILED)
        return allow

    def handle_update(self, request: UpdateRequest) -> UpdateResult:
        """
        Run one update request through all gates and commit its changes.

        Rejections never touch the host table. Raises PersistenceException
        if the changes could not be saved.
        """
        # require hostname parameter
        if request.hostname is None:
            return UpdateResult.rejected(ResponseStatus.HOSTNAME_MISSING)

        hostnames = request.hostname.split(",")

        # check for invalid hostnames
        if any(not hostname_valid(hostname, self.domain) for hostname in hostnames):
            return UpdateResult.rejected(ResponseStatus.HOSTNAME_MALFORMED)

        # check for hostnames that the user does not own
        user = self.users.get(request.username)
        permitted = set(user.hosts) if user is not None else set()
        if any(hostname not in permitted for hostname in hostnames):
            return UpdateResult.rejected(ResponseStatus.HOST_FORBIDDEN)

        with self.lock:
            if request.is_offline:
                myips: List[str] = []
            else:
                myips = extract_myips(request)
                # require at least one IP to update
                if not myips:
                    return UpdateResult.rejected(ResponseStatus.HOST_FORBIDDEN)

            self.context.mark(metrics.REQUESTS_VALID)
            self.log.info(f"Request to update {hostnames} to {myips} for user {request.username}")

            changes = process_changes(hostnames, myips, self.db["hosts"])
            self.context.mark(metrics.REQUESTS_GOOD, changes.count(ChangeOutcome.GOOD))
            self.context.mark(metrics.REQUESTS_NOCHG, changes.count(ChangeOutcome.NOCHG))

            if self.db.changed():
                self._commit()

        return UpdateResult(status_code=200, status=ResponseStatus.SUCCESS, changes=changes, myips=myips)

    def _commit(self) -> None:
        """Advance the serial, save, then propagate"""
        self.db["serial"] += 1
        self.log.info(f"Committing update #{self.db['serial']}")
        try:
            self.db.save()
        except PersistenceException as e:
            # The serial only advances together with a successful save
            self.db["serial"] -= 1
            self.context.mark(metrics.UPDATES_PERSISTENCE_FAILED)
            self.log.error(f"Failed to persist update: {e.message}")
            raise
        self._propagate()
        self.context.mark(metrics.UPDATES_COMMITTED)

    def _propagate(self) -> None:
        try:
            self.updater.update(self.db)
        except PropagationException as e:
            self.context.mark(metrics.UPDATES_PROPAGATION_FAILED)
            self.log.error(
                f"Zone divergence: serial {self.db['serial']} is saved but was not propagated: {e.message}"
            )
