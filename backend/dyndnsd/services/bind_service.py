"""
Propagation of committed updates to the authoritative nameserver
"""

import shlex
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List

import dns.exception
import dns.zone

from ..core.config import Settings, UpdaterParams
from ..core.context import AppContext
from ..core.exceptions import PropagationException
from .database_service import Database
from .zone_generator import BindZoneGenerator


class Propagator(ABC):
    """Makes the nameserver serve the state of a database snapshot"""

    @abstractmethod
    def update(self, db: Database) -> None:
        """Raises PropagationException if the zone could not be activated"""


class NullPropagator(Propagator):
    """Used when no updater is configured; only logs"""

    def __init__(self, context: AppContext):
        self.log = context.get_logger("propagation")

    def update(self, db: Database) -> None:
        self.log.debug(f"No updater configured, serial {db['serial']} not propagated")


class CommandWithBindZone(Propagator):
    """Writes a BIND zone file and runs a reload command"""

    def __init__(self, domain: str, params: UpdaterParams, context: AppContext):
        self.domain = domain
        self.zone_file = Path(params.zone_file)
        self.command = params.command
        self.check_zone = params.check_zone
        self.command_timeout = params.command_timeout
        self.generator = BindZoneGenerator(domain, params, context)
        self.log = context.get_logger("propagation")

    def update(self, db: Database) -> None:
        content = self.generator.generate(db["serial"], db["hosts"])

        if self.check_zone:
            self.validate_zone_content(content)

        self.write_zone_file(content)

        result = self._run_command(shlex.split(self.command))
        if result["returncode"] != 0:
            raise PropagationException(
                f"Reload command failed with exit code {result['returncode']}: {result['stderr'].strip()}",
                details={"command": self.command, **result}
            )
        self.log.info(f"Zone {self.domain} serial {db['serial']} written to {self.zone_file} and reloaded")

    def validate_zone_content(self, content: str) -> None:
        """Parse the generated zone with dnspython before it replaces the live file"""
        try:
            dns.zone.from_text(content, origin=f"{self.domain}.", relativize=True, check_origin=True)
        except dns.exception.DNSException as e:
            raise PropagationException(
                f"Generated zone for {self.domain} is invalid: {e}",
                suggestions=["Check the ttl, dns, email_addr and additional_zone_content updater params"]
            )

    def write_zone_file(self, content: str) -> None:
        try:
            self.zone_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = self.zone_file.with_name(f".{self.zone_file.name}.tmp")
            tmp_file.write_text(content, encoding='utf-8')
            # Readable by the nameserver
            tmp_file.chmod(0o644)
            tmp_file.replace(self.zone_file)
        except OSError as e:
            raise PropagationException(f"Failed to write zone file {self.zone_file}: {e}")

    def _run_command(self, command: List[str]) -> Dict:
        """Run the reload command, reporting missing binaries and timeouts as return codes"""
        try:
            process = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                timeout=self.command_timeout
            )
            return {
                "returncode": process.returncode,
                "stdout": process.stdout.decode(errors="replace"),
                "stderr": process.stderr.decode(errors="replace")
            }
        except subprocess.TimeoutExpired:
            self.log.error(f"Command timed out: {' '.join(command)}")
            return {
                "returncode": -1,
                "stdout": "",
                "stderr": "Command timed out"
            }
        except FileNotFoundError as e:
            self.log.error(f"Command not found: {' '.join(command)}")
            return {
                "returncode": 127,
                "stdout": "",
                "stderr": str(e)
            }
        except OSError as e:
            self.log.error(f"Command failed: {' '.join(command)}: {e}")
            return {
                "returncode": -1,
                "stdout": "",
                "stderr": str(e)
            }


def create_propagator(settings: Settings, context: AppContext) -> Propagator:
    """Propagator selected by the updater section of the configuration"""
    updater = settings.UPDATER
    if updater is None:
        return NullPropagator(context)
    return CommandWithBindZone(settings.DOMAIN, updater.params, context)
