"""Jinja2 template utilities for LLM components."""

from jinja2 import Environment, PackageLoader, select_autoescape

from continuum.domain.entities import Message


def format_message(message: Message, max_chars: int | None = None) -> str:
    """Format a message as a single transcript line.

    Args:
        message: Message to format.
        max_chars: Truncate the content to this many characters.

    Returns:
        String like "[3] user: hello".
    """
    content = message.content if max_chars is None else message.content[:max_chars]
    return f"[{message.seq}] {message.role.value}: {content}"


def create_jinja_env() -> Environment:
    """Create Jinja2 environment for LLM templates.

    Creates a configured Jinja2 environment that loads templates from
    the continuum.infrastructure.llm.templates package.

    Returns:
        Configured Jinja2 environment.
    """
    return Environment(
        loader=PackageLoader("continuum.infrastructure.llm", "templates"),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
    )
