"""Render stage - bind a structured profile into an HTML template.

Templates are evaluated in a restricted Jinja2 sandbox: variable
substitution, ``{% if %}`` sections and ``{% for %}`` loops over the
profile data, plus a short list of formatting filters. Attribute access
to Python internals is refused, no globals are exposed, the only callable
methods are the read-only dict ones (``skills.items()``), and arithmetic
is limited to numbers. Missing fields render as empty instead of failing.
Output is capped at ``MAX_RENDER_CHARS``.
"""

import logging
from typing import Any, Optional

from jinja2 import ChainableUndefined, TemplateError, TemplateSyntaxError
from jinja2.exceptions import SecurityError
from jinja2.runtime import Context
from jinja2.sandbox import SandboxedEnvironment

from ..errors import TemplateCompileError
from ..models import ExtractedProfile, TemplateReference
from ..services import TemplateLibrary

logger = logging.getLogger(__name__)


MAX_RENDER_CHARS = 2_000_000

ALLOWED_FILTERS = frozenset({
    "capitalize", "count", "d", "default", "dictsort", "e", "escape",
    "first", "int", "join", "last", "length", "list", "lower", "map",
    "reject", "rejectattr", "reverse", "select", "selectattr", "sort",
    "string", "striptags", "title", "tojson", "trim", "truncate", "unique",
    "upper", "urlencode", "wordcount",
})

DICT_METHODS = frozenset({"items", "keys", "values", "get"})


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float))


class PortfolioSandbox(SandboxedEnvironment):
    """Sandbox that only evaluates what a portfolio template needs."""

    intercepted_binops = frozenset({"*", "**", "%", "+"})

    def call_binop(self, context: Context, operator: str, left: Any, right: Any) -> Any:
        if operator == "**" or not (_is_number(left) and _is_number(right)):
            raise SecurityError(
                f"'{operator}' is only allowed between numbers in a portfolio template"
            )
        return super().call_binop(context, operator, left, right)

    def is_safe_callable(self, obj: Any) -> bool:
        owner = getattr(obj, "__self__", None)
        return isinstance(owner, dict) and getattr(obj, "__name__", None) in DICT_METHODS

    def call(__self, __context: Context, __obj: Any, *args: Any, **kwargs: Any) -> Any:
        if not __self.is_safe_callable(__obj):
            raise SecurityError(f"{__obj!r} is not callable in a portfolio template")
        return __context.call(__obj, *args, **kwargs)


def create_template_env() -> PortfolioSandbox:
    """Create the restricted Jinja2 environment configured for HTML output."""
    env = PortfolioSandbox(
        autoescape=True,
        undefined=ChainableUndefined,
        keep_trailing_newline=True,
    )
    env.globals.clear()
    env.filters = {name: f for name, f in env.filters.items() if name in ALLOWED_FILTERS}
    env.filters["join_items"] = join_items
    return env


def join_items(items, separator: str = ", ") -> str:
    """Join a list field, tolerating a missing value."""
    if not items:
        return ""
    if isinstance(items, str):
        return items
    return separator.join(str(item) for item in items)


def resolve_template(reference: TemplateReference, library: TemplateLibrary) -> str:
    """Return the caller-supplied body, or the library template for the id.

    Raises:
        TemplateNotFoundError: If no body was supplied and the id is unknown.
    """
    if reference.is_inline:
        logger.debug(f"Using caller-supplied body for template {reference.template_id}")
        return reference.body
    return library.get_body(reference.template_id)


def render_portfolio(
    profile: ExtractedProfile,
    reference: TemplateReference,
    library: TemplateLibrary,
    avatar: Optional[str] = None,
) -> str:
    """Render ``profile`` into the referenced template.

    Args:
        profile: Structured profile from the completion service
        reference: Template id plus optional inline body
        library: Server-side templates used when no body is supplied
        avatar: Optional data URI attached as ``personalInfo.avatar``

    Returns:
        The rendered HTML document.

    Raises:
        TemplateNotFoundError: If the template cannot be resolved
        TemplateCompileError: If the template is invalid, fails to evaluate
            or renders more than MAX_RENDER_CHARS
    """
    source = resolve_template(reference, library)

    if avatar:
        profile = profile.with_avatar(avatar)

    env = create_template_env()

    try:
        template = env.from_string(source)
    except TemplateSyntaxError as e:
        raise TemplateCompileError(
            f"Template '{reference.template_id}' is invalid",
            details=f"line {e.lineno}: {e.message}",
        ) from e

    chunks = []
    size = 0
    try:
        for chunk in template.generate(profile.to_context()):
            size += len(chunk)
            if size > MAX_RENDER_CHARS:
                raise TemplateCompileError(
                    f"Template '{reference.template_id}' output is too large",
                    details=f"more than {MAX_RENDER_CHARS} characters",
                )
            chunks.append(chunk)
    except (TemplateError, TypeError, ValueError, ArithmeticError) as e:
        raise TemplateCompileError(
            f"Template '{reference.template_id}' failed to render",
            details=str(e),
        ) from e
    rendered = "".join(chunks)

    logger.info(f"Rendered template {reference.template_id} ({len(rendered)} chars)")
    return rendered
