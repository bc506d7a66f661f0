"""
Domain Services

Static screening of submitted code before any process exists.
"""

import re
from typing import Callable, Iterable, List, Optional

import structlog

from portal_executor.domain.errors import ExecutionError


logger = structlog.get_logger(__name__)


# Call forms that evaluate arbitrary text at runtime
DANGEROUS_CALLS = ("eval", "exec", "compile", "__import__")

_FROM_IMPORT = re.compile(r"\bfrom\s+(\.*[\w.]*)\s+import\b")
_IMPORT = re.compile(
    r"\bimport\s+([A-Za-z_][\w.]*(?:\s+as\s+\w+)?(?:\s*,\s*[A-Za-z_][\w.]*(?:\s+as\s+\w+)?)*)"
)


def extract_imported_modules(code: str) -> List[str]:
    """
    Extract top-level module names from import statements.

    Handles ``import a``, ``import a.b as c, d`` and ``from a.b import c``.
    Relative imports are reported with their leading dots.

    Examples:
        >>> extract_imported_modules("import math, json as j\\nfrom collections import deque")
        ['collections', 'math', 'json']
    """
    modules: List[str] = []

    # from-imports first, then blank them so their trailing "import" is not re-read
    for match in _FROM_IMPORT.finditer(code):
        name = match.group(1)
        modules.append(name if name.startswith(".") else name.split(".")[0])
    remainder = _FROM_IMPORT.sub("", code)

    for match in _IMPORT.finditer(remainder):
        for item in match.group(1).split(","):
            name = item.strip().split()[0]
            modules.append(name.split(".")[0])

    return modules


class SecurityScreener:
    """
    Lexical pre-filter for submitted code.

    Runs three independent checks and reports every violation found:
    a substring blocklist, an import allowlist and a scan for
    dynamic-execution call forms. This is a cheap heuristic; it is easy to
    bypass and never stands in for process-level isolation.
    """

    def __init__(
        self,
        allowed_modules: Iterable[str],
        blocked_patterns: Iterable[str],
        on_violation: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize the screener.

        Args:
            allowed_modules: Module names code may import
            blocked_patterns: Substrings that reject code outright
            on_violation: Called once per rejected submission
        """
        self._allowed_modules = frozenset(allowed_modules)
        self._blocked_patterns = tuple(blocked_patterns)
        self._on_violation = on_violation

    def find_violations(self, code: str) -> List[str]:
        violations = []

        for pattern in self._blocked_patterns:
            if pattern in code:
                violations.append(f"Blocked pattern detected: {pattern}")

        for module in extract_imported_modules(code):
            if module not in self._allowed_modules:
                violations.append(f"Unauthorized module import: {module}")

        for func in DANGEROUS_CALLS:
            if f"{func}(" in code:
                violations.append(f"Dangerous function call: {func}")

        return violations

    def screen(self, code: str) -> None:
        """
        Reject code that fails any check.

        Raises:
            ExecutionError: flagged ``security_violation`` with the list of
                violations in ``details``
        """
        violations = self.find_violations(code)
        if not violations:
            return

        if self._on_violation is not None:
            self._on_violation()

        logger.warning(
            "Security violations detected",
            violation_count=len(violations),
            code_length=len(code),
        )
        raise ExecutionError(
            "Security violations detected",
            security_violation=True,
            details={"violations": violations},
        )
