"""Template rendering for notification messages.

Templates are mustache, rendered with chevron:

    Hi {{customer.name}}, your order {{orderId}} has shipped.
    {{#hasDiscount}}You saved {{discount}}.{{/hasDiscount}}

- ``{{path}}`` substitutes a value found by walking nested mappings along a
  dotted path (numeric segments index into lists). Missing values render as
  an empty string.
- ``{{#flag}}...{{/flag}}`` renders its content only when ``flag`` is truthy.

Plain-text parts (subject, body, SMS) are rendered without HTML escaping;
HTML bodies escape substituted values. Partials and delimiter changes are
not supported in notification templates.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

import chevron
from chevron.tokenizer import tokenize

from notifications.ports.exceptions import TemplateSyntaxError

_KEY = re.compile(r"^(\.|[A-Za-z0-9_\-]+(\.[A-Za-z0-9_\-]+)*)$")
_KEYED_TAGS = {"variable", "no escape", "section", "inverted section", "end"}


def render_template(
    template: str, variables: Mapping[str, Any], escape_html: bool = False
) -> str:
    """Render a template against a variable mapping.

    Args:
        template: Template text
        variables: Nested mapping of values
        escape_html: HTML-escape substituted values

    Raises:
        TemplateSyntaxError: The template cannot be parsed
    """
    tokens = _tokenize(template)
    if not escape_html:
        tokens = [
            ("no escape", key) if tag == "variable" else (tag, key)
            for tag, key in tokens
        ]
    return chevron.render(tokens, dict(variables))


def validate_template(template: str) -> None:
    """Check template syntax.

    Raises:
        TemplateSyntaxError: On unbalanced braces, malformed placeholders,
            stray braces next to a tag, unsupported tags, or
            unmatched/misnested sections
    """
    tokens = _tokenize(template)

    for index, (tag, key) in enumerate(tokens):
        if tag == "literal":
            if "{{" in key or "}}" in key:
                raise TemplateSyntaxError(f"Malformed placeholder near: {key[:20]!r}")
            after_tag = index > 0
            before_tag = index + 1 < len(tokens)
            if (after_tag and key.startswith("}")) or (
                before_tag and key.endswith("{")
            ):
                raise TemplateSyntaxError(f"Stray brace next to a tag: {key[:20]!r}")
        elif tag not in _KEYED_TAGS:
            raise TemplateSyntaxError(f"Unsupported tag {tag!r} for {key!r}")
        elif not _KEY.match(key):
            raise TemplateSyntaxError(f"Malformed placeholder {{{{{key}}}}}")


def _tokenize(template: str) -> list[tuple[str, str]]:
    try:
        return list(tokenize(template))
    except chevron.ChevronError as e:
        raise TemplateSyntaxError(str(e).splitlines()[0]) from e
    except IndexError as e:
        # chevron indexes the first character of an empty tag
        raise TemplateSyntaxError("Empty placeholder {{}}") from e
