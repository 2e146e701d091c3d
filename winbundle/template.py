"""Flat ``{{TOKEN}}`` placeholder substitution."""

from __future__ import annotations

import re
from typing import Mapping

_PLACEHOLDER = re.compile(r"\{\{([^{}]+?)\}\}")


def replace_template_variables(template: str, variables: Mapping[str, str]) -> str:
    """Replace every ``{{NAME}}`` whose name is in ``variables``.

    Unknown placeholders are left verbatim. The scan happens once over the
    original text, so inserted values are never re-examined for placeholders.
    No escaping is applied to values.
    """
    if not template or not variables:
        return template

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return _PLACEHOLDER.sub(_substitute, template)


__all__ = ["replace_template_variables"]
