"""Firewall management module for blocking/unblocking network access.

Each program gets a pair of Windows Firewall block rules, one outbound and one
inbound. Rules are never tracked in a file: their names are derived from the
program path every time, so the same path always maps to the same rules.

All operations that change rules require Administrator privileges.
"""

import enum
import hashlib
import ntpath
from dataclasses import dataclass

from netblock.backend import (
    ADD,
    DELETE,
    INBOUND,
    OUTBOUND,
    SHOW,
    NetshBackend,
    RuleRequest,
)
from netblock.console import mentions_path, says_no_rule_matches
from netblock.errors import BackendError

RULE_PREFIX = 'BlockProgram'
INBOUND_SUFFIX = '_In'


class AccessState(enum.Enum):
    BLOCKED = 'BLOCKED'
    ALLOWED = 'ALLOWED'
    PARTIAL = 'PARTIAL'


class DeleteOutcome(enum.Enum):
    DELETED = 'deleted'
    ALREADY_ABSENT = 'already_absent'
    BACKEND_FAILURE = 'backend_failure'


@dataclass(frozen=True)
class UnblockResult:
    """Per-direction outcome of removing a program's rules."""

    outbound: DeleteOutcome
    inbound: DeleteOutcome
    output: str = ''

    @property
    def failed(self) -> bool:
        return DeleteOutcome.BACKEND_FAILURE in (self.outbound, self.inbound)


def rule_name(program_path: str) -> str:
    """Build the outbound rule name for a program.

    Format: ``BlockProgram_<name without extension>_<hash>`` where hash is the
    first 8 hex digits of the MD5 of the lowercased path.

    Args:
        program_path: Absolute path to the executable

    Returns:
        Rule name, identical for every call with the same path
    """
    base = ntpath.basename(program_path)
    name = ntpath.splitext(base)[0]
    digest = hashlib.md5(program_path.lower().encode('utf-8')).hexdigest()[:8]
    return f"{RULE_PREFIX}_{name}_{digest}"


class FirewallManager:
    """Manage firewall rules to block/unblock programs."""

    def __init__(self, backend=None):
        """Initialize manager.

        Args:
            backend: Object with a ``run(RuleRequest) -> RuleResult`` method
                (default: NetshBackend)
        """
        self.backend = backend if backend is not None else NetshBackend()

    def block(self, program_path: str):
        """Block a program from accessing the network.

        Adds the outbound rule, then the inbound rule. If the outbound rule
        cannot be added the inbound rule is not attempted.

        Args:
            program_path: Absolute path to the executable

        Raises:
            BackendError: If either rule could not be added
        """
        name = rule_name(program_path)

        for direction, directional_name in ((OUTBOUND, name), (INBOUND, name + INBOUND_SUFFIX)):
            result = self.backend.run(RuleRequest(
                action=ADD,
                rule_name=directional_name,
                direction=direction,
                program_path=program_path,
                behavior='block',
                enabled=True,
            ))
            if not result.success:
                raise BackendError(
                    f"Failed to create {direction}bound rule {directional_name}",
                    result.output,
                )

    def unblock(self, program_path: str, strict: bool = False) -> UnblockResult:
        """Remove a program's block rules.

        Both deletes are always attempted. A rule that does not exist counts
        as removed.

        Args:
            program_path: Absolute path to the executable
            strict: Raise if either delete failed for a reason other than
                the rule being absent

        Returns:
            UnblockResult with the outcome of each direction

        Raises:
            BackendError: Only when ``strict`` is set and a delete failed
        """
        name = rule_name(program_path)

        outbound, out_text = self._delete(name, OUTBOUND, program_path)
        inbound, in_text = self._delete(name + INBOUND_SUFFIX, INBOUND, program_path)

        unblocked = UnblockResult(
            outbound=outbound,
            inbound=inbound,
            output="\n".join(text.strip() for text in (out_text, in_text) if text.strip()),
        )
        if strict and unblocked.failed:
            raise BackendError(f"Failed to remove rules for {program_path}", unblocked.output)
        return unblocked

    def status(self, program_path: str) -> AccessState:
        """Check which of a program's block rules exist.

        Args:
            program_path: Absolute path to the executable

        Returns:
            BLOCKED if both rules exist, ALLOWED if neither, PARTIAL otherwise

        Raises:
            BackendError: If a rule query failed
        """
        name = rule_name(program_path)

        out_exists = self._rule_exists(name, OUTBOUND, program_path)
        in_exists = self._rule_exists(name + INBOUND_SUFFIX, INBOUND, program_path)

        if out_exists and in_exists:
            return AccessState.BLOCKED
        if not out_exists and not in_exists:
            return AccessState.ALLOWED
        return AccessState.PARTIAL

    def _delete(self, name: str, direction: str, program_path: str):
        result = self.backend.run(RuleRequest(
            action=DELETE,
            rule_name=name,
            direction=direction,
            program_path=program_path,
        ))
        if result.success:
            return DeleteOutcome.DELETED, ''
        if says_no_rule_matches(result.output):
            return DeleteOutcome.ALREADY_ABSENT, ''
        return DeleteOutcome.BACKEND_FAILURE, result.output

    def _rule_exists(self, name: str, direction: str, program_path: str) -> bool:
        """Check that a rule with this name and direction is bound to the program."""
        result = self.backend.run(RuleRequest(action=SHOW, rule_name=name, direction=direction))

        # netsh exits non-zero when nothing matches
        if says_no_rule_matches(result.output):
            return False
        if not result.success:
            raise BackendError(f"Failed to query rule {name}", result.output)

        # A rule of the same name bound to another program is not ours
        return mentions_path(result.output, program_path)

