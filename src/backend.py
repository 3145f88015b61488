"""Windows Firewall backend built on ``netsh advfirewall``.

The backend turns a ``RuleRequest`` into a netsh command line, runs it and
returns a ``RuleResult`` with the decoded console output. It knows nothing
about rule naming or program resolution.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from netblock.console import decode_output
from netblock.errors import BackendError

logger = logging.getLogger(__name__)

ADD = 'add'
DELETE = 'delete'
SHOW = 'show'

INBOUND = 'in'
OUTBOUND = 'out'


@dataclass(frozen=True)
class RuleRequest:
    """One rule operation for the firewall backend."""

    action: str
    rule_name: str
    direction: str
    program_path: Optional[str] = None
    behavior: Optional[str] = None
    enabled: Optional[bool] = None


@dataclass(frozen=True)
class RuleResult:
    """Outcome of a rule operation."""

    success: bool
    output: str = ''


class NetshBackend:
    """Run rule requests through netsh."""

    def __init__(self, netsh: str = 'netsh', timeout: Optional[float] = None):
        """Initialize backend.

        Args:
            netsh: netsh executable name or path
            timeout: Seconds to wait for each netsh call (default: wait forever)
        """
        self.netsh = netsh
        self.timeout = timeout

    def build_command(self, request: RuleRequest) -> List[str]:
        """Build the netsh argument list for a request."""
        if request.action not in (ADD, DELETE, SHOW):
            raise ValueError(f"Unsupported rule action: {request.action}")
        if request.direction not in (INBOUND, OUTBOUND):
            raise ValueError(f"Unsupported rule direction: {request.direction}")

        cmd = [
            self.netsh, 'advfirewall', 'firewall', request.action, 'rule',
            f'name={request.rule_name}',
            f'dir={request.direction}',
        ]
        if request.program_path:
            cmd.append(f'program={request.program_path}')
        if request.behavior:
            cmd.append(f'action={request.behavior}')
        if request.enabled is not None:
            cmd.append(f"enable={'yes' if request.enabled else 'no'}")
        if request.action == SHOW:
            # Non-verbose output omits the program path
            cmd.append('verbose')
        return cmd

    def run(self, request: RuleRequest) -> RuleResult:
        """Execute a rule request.

        Args:
            request: The rule operation to perform

        Returns:
            RuleResult with success flag and decoded stdout+stderr

        Raises:
            BackendError: If netsh cannot be started or times out
        """
        cmd = self.build_command(request)
        logger.debug("Running %s", subprocess.list2cmdline(cmd))

        try:
            result = subprocess.run(cmd, capture_output=True, timeout=self.timeout)
        except FileNotFoundError as e:
            raise BackendError(f"netsh not found ({self.netsh})") from e
        except subprocess.TimeoutExpired as e:
            raise BackendError(f"netsh timed out after {self.timeout} seconds") from e

        output = decode_output(result.stdout) + decode_output(result.stderr)
        logger.debug("netsh exited with %s: %s", result.returncode, output.strip())
        return RuleResult(success=result.returncode == 0, output=output)
