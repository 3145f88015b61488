from __future__ import annotations

import pytest

from netblock.backend import ADD, DELETE, SHOW, RuleRequest, RuleResult
from netblock.firewall import FirewallManager

NO_MATCH_OUTPUT = "\nNo rules match the specified criteria.\n\n"


class FakeNetsh:
    """In-memory rule store that answers like netsh advfirewall."""

    def __init__(self) -> None:
        self.rules: dict[tuple[str, str], str] = {}
        self.requests: list[RuleRequest] = []
        self.failures: dict[tuple[str, str], str] = {}

    def fail(self, action: str, direction: str, output: str = "An error occurred.") -> None:
        self.failures[(action, direction)] = output

    def run(self, request: RuleRequest) -> RuleResult:
        self.requests.append(request)
        failure = self.failures.get((request.action, request.direction))
        if failure is not None:
            return RuleResult(success=False, output=failure)

        key = (request.rule_name, request.direction)
        if request.action == ADD:
            self.rules[key] = request.program_path
            return RuleResult(success=True, output="Ok.\n\n")
        if request.action == DELETE:
            if key not in self.rules:
                return RuleResult(success=False, output=NO_MATCH_OUTPUT)
            del self.rules[key]
            return RuleResult(success=True, output="\nDeleted 1 rule(s).\nOk.\n\n")
        if request.action == SHOW:
            if key not in self.rules:
                return RuleResult(success=False, output=NO_MATCH_OUTPUT)
            direction = "In" if request.direction == "in" else "Out"
            return RuleResult(
                success=True,
                output=(
                    f"\nRule Name:                            {request.rule_name}\n"
                    "----------------------------------------------------------------------\n"
                    "Enabled:                              Yes\n"
                    f"Direction:                            {direction}\n"
                    "Profiles:                             Domain,Private,Public\n"
                    f"Program:                              {self.rules[key]}\n"
                    "Action:                               Block\n"
                    "Ok.\n\n"
                ),
            )
        raise AssertionError(f"unexpected action {request.action}")


@pytest.fixture
def netsh() -> FakeNetsh:
    return FakeNetsh()


@pytest.fixture
def manager(netsh: FakeNetsh) -> FirewallManager:
    return FirewallManager(netsh)
