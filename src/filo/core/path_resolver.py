"""Destination template expansion.

A destination such as ``D:/sorted/{label}/{id}`` is expanded with the named
captures of the rule's regex filename filter. Captured values are sanitized
so a filename can never inject path separators or reserved characters into
the destination.
"""

import logging
import re
from pathlib import Path
from typing import Mapping, Optional

from ..domain.result import Result, Success, Failure, TemplateUnresolvedError
from ..models.ruleset import TEMPLATE_VAR_PATTERN, has_template_vars

logger = logging.getLogger(__name__)

RESERVED_CHARS_PATTERN = re.compile(r'[/\\:*?"<>|]')
REPLACEMENT_CHAR = "_"


def sanitize_capture(value: str) -> str:
    """Replace filesystem-reserved characters with an underscore.

    A value made only of dots would name the current or parent folder, so
    it becomes a single underscore.
    """
    if value and not value.strip("."):
        return REPLACEMENT_CHAR
    return RESERVED_CHARS_PATTERN.sub(REPLACEMENT_CHAR, value)


def expand_template(template: str, captures: Mapping[str, str]) -> str:
    """Substitute every placeholder from `captures`.

    Raises:
        TemplateUnresolvedError: If a placeholder has no capture or an empty one.
    """
    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if name not in captures:
            raise TemplateUnresolvedError(f"no capture named '{name}'")
        value = captures[name]
        if not value:
            raise TemplateUnresolvedError(f"capture '{name}' is empty")
        return sanitize_capture(value)

    return TEMPLATE_VAR_PATTERN.sub(_replace, template)


def resolve_destination(
    template: str,
    captures: Optional[Mapping[str, str]],
    is_regex: bool,
) -> Result[Path, TemplateUnresolvedError]:
    """Resolve a destination folder template for one file.

    Args:
        template: Destination folder, possibly containing `{name}` placeholders
        captures: Named captures from the filename regex, if any
        is_regex: Whether the rule's filename filter is a regex

    Returns:
        Success with the folder path, or Failure when the template cannot be
        filled for this file.
    """
    if not has_template_vars(template):
        return Success(Path(template))

    if not is_regex:
        return Failure(TemplateUnresolvedError(
            "destination uses template variables but the filename filter is not a regex"
        ))

    try:
        resolved = expand_template(template, captures or {})
    except TemplateUnresolvedError as e:
        logger.debug(f"Template '{template}' unresolved: {e}")
        return Failure(e)
    return Success(Path(resolved))
