"""Path-prefix access rules evaluated before a request reaches a router."""

from collections.abc import Iterable
from dataclasses import dataclass, field


@dataclass(frozen=True)
class GuardRule:
    prefix: str
    # Empty means any signed-in caller.
    roles: frozenset[str] = field(default_factory=frozenset)

    def matches(self, path: str) -> bool:
        return path.startswith(self.prefix)


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    status_code: int = 200
    error: str | None = None


ALLOW = GuardDecision(allowed=True)

DEFAULT_RULES = (
    GuardRule('/doctor/', frozenset({'doctor'})),
    GuardRule('/profile'),
    GuardRule('/consultation'),
)


class RouteGuard:
    def __init__(self, rules: Iterable[GuardRule] = DEFAULT_RULES):
        self.rules = tuple(rules)

    def evaluate(self, path: str, claims: dict | None) -> GuardDecision:
        for rule in self.rules:
            if not rule.matches(path):
                continue

            if claims is None:
                return GuardDecision(allowed=False, status_code=401, error='Authentication required')

            if rule.roles and claims.get('role') not in rule.roles:
                allowed_roles = ', '.join(sorted(rule.roles))
                return GuardDecision(
                    allowed=False,
                    status_code=403,
                    error=f'Access restricted to role: {allowed_roles}',
                )

        return ALLOW
