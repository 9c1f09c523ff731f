"""Placeholder substitution for message templates."""

import re
from typing import Mapping, Optional

# ${NAME}; NAME cannot contain "$", "{" or "}"
PLACEHOLDER_PATTERN = re.compile(r"\$\{([^${}]*)\}")


class MessageFormatter:
    """Substitutes ``${NAME}`` placeholders from a variable mapping.

    Lookups are case-sensitive. Unknown placeholders are left in the output
    untouched so a mistyped reference stays visible in the posted message.
    Substituted values are inserted literally and never re-scanned.
    """

    def __init__(self, variables: Optional[Mapping[str, str]] = None):
        self.variables = dict(variables or {})

    def format(self, template: Optional[str]) -> Optional[str]:
        """Resolve all placeholders in a template.

        Args:
            template: Text containing zero or more placeholders, or None.

        Returns:
            The resolved text. None and empty templates are returned as given.
        """
        if not template:
            return template
        return PLACEHOLDER_PATTERN.sub(self._replace, template)

    def _replace(self, match: re.Match) -> str:
        name = match.group(1)
        if name in self.variables:
            return str(self.variables[name])
        return match.group(0)


def format_template(template: Optional[str], variables: Mapping[str, str]) -> Optional[str]:
    """Format a single template against a variable mapping."""
    return MessageFormatter(variables).format(template)
