"""Expression Flattener: linearizes conditional expressions into rule lists.

Two syntaxes are recognized:

* ``IIF(condition, when_true, when_false)``, where ``when_false`` may itself be
  an IIF call, forming an if/else-if chain;
* ``CASE WHEN c1 THEN o1 [WHEN c2 THEN o2 ...] [ELSE o] END``.

The parser is pattern based. Arguments are split at top-level commas by
tracking parenthesis depth only, so commas or keywords inside string literals
are not recognized as such. Input outside the grammar yields ``None`` and the
caller shows the raw text instead; a partial rule list is never returned.
"""

import re
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

DEFAULT_CONDITION = "Default - When nothing fits the above cases"
ELSE_CONDITION = "ELSE"

_IIF_START = re.compile(r"^\s*IIF\s*\(", re.IGNORECASE)
_CASE_START = re.compile(r"^CASE\s+", re.IGNORECASE)
_CASE_END = re.compile(r"\s+END\s*$", re.IGNORECASE)
_WHEN_THEN = re.compile(
    r"^WHEN\s+(.+?)\s+THEN\s+(.+?)(?=\s+(?:WHEN|ELSE)\b|\s*$)",
    re.IGNORECASE | re.DOTALL,
)
_ELSE = re.compile(r"^ELSE\s+(.+)$", re.IGNORECASE | re.DOTALL)


@dataclass(frozen=True)
class Rule:
    """One flattened branch: ``outcome`` applies when ``condition`` holds."""

    condition: str
    outcome: str

    @property
    def is_default(self) -> bool:
        return self.condition in (DEFAULT_CONDITION, ELSE_CONDITION)

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def flatten_expression(expr: Optional[str]) -> Optional[List[Rule]]:
    """Flatten an IIF chain or CASE block into ordered rules.

    Args:
        expr: Raw expression text

    Returns:
        At least one Rule, the last being the default branch when the
        expression has one; None when the text is not a recognized conditional
    """
    if not expr or not isinstance(expr, str):
        return None
    text = expr.strip()
    if _CASE_START.match(text):
        return flatten_case(text)
    if _IIF_START.match(text):
        return flatten_iif(text)
    return None


def flatten_iif(expr: str) -> Optional[List[Rule]]:
    """Flatten a (possibly nested) IIF call.

    Only the third argument is followed into nested IIF calls; IIF calls
    inside a condition or outcome stay verbatim.
    """
    rules: List[Rule] = []
    if not _parse_iif_chain(expr.strip(), rules):
        return None
    return rules


def _parse_iif_chain(text: str, rules: List[Rule]) -> bool:
    args = split_iif_arguments(text)
    if args is None:
        return False

    condition, when_true, when_false = args
    rules.append(Rule(condition=condition, outcome=when_true))

    if _IIF_START.match(when_false):
        nested: List[Rule] = []
        if _parse_iif_chain(when_false, nested):
            rules.extend(nested)
            return True
    rules.append(Rule(condition=DEFAULT_CONDITION, outcome=when_false))
    return True


def split_iif_arguments(text: str) -> Optional[List[str]]:
    """Split ``IIF(a, b, c)`` into its three stripped arguments.

    Returns None when the call is unclosed, has trailing text after the
    closing parenthesis, or does not have exactly three arguments.
    """
    match = _IIF_START.match(text)
    if not match:
        return None

    depth = 1
    start = match.end()
    args: List[str] = []
    closed_at = None
    for index in range(start, len(text)):
        char = text[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                args.append(text[start:index])
                closed_at = index
                break
        elif char == "," and depth == 1:
            args.append(text[start:index])
            start = index + 1

    if closed_at is None or text[closed_at + 1 :].strip():
        return None
    if len(args) != 3:
        return None
    return [arg.strip() for arg in args]


def flatten_case(expr: str) -> Optional[List[Rule]]:
    """Flatten a searched ``CASE WHEN ... THEN ... ELSE ... END`` block.

    The simple form (``CASE x WHEN 1 THEN ...``) is not recognized.
    """
    text = expr.strip()
    match = _CASE_START.match(text)
    if not match:
        return None

    remaining = _CASE_END.sub("", " " + text[match.end() :]).strip()
    rules: List[Rule] = []

    while True:
        when = _WHEN_THEN.match(remaining)
        if not when:
            break
        rules.append(
            Rule(condition=when.group(1).strip(), outcome=when.group(2).strip())
        )
        remaining = remaining[when.end() :].strip()

    if remaining:
        otherwise = _ELSE.match(remaining)
        if not otherwise:
            return None
        rules.append(Rule(condition=ELSE_CONDITION, outcome=otherwise.group(1).strip()))

    if not rules or rules[0].condition == ELSE_CONDITION:
        return None
    return rules


def rules_to_prose(rules: List[Rule]) -> List[str]:
    """Render rules back into one readable sentence per branch."""
    lines = []
    for rule in rules:
        if rule.is_default:
            lines.append(f"Otherwise {rule.outcome}")
        else:
            lines.append(f"When {rule.condition} then {rule.outcome}")
    return lines
