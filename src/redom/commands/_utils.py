"""Response builders shared by redom commands.

PUBLIC API:
  - build_info_response: Title plus key/value fields in markdown
  - truncate_string: Truncate long text with a marker
"""

from replkit2.textkit import markdown


def truncate_string(text: str, max_length: int) -> str:
    """Truncate `text` to `max_length` characters, noting how much was cut."""
    if max_length <= 0 or len(text) <= max_length:
        return text
    return text[:max_length] + f"\n... [truncated, {len(text)} chars total]"


def build_info_response(title: str, fields: dict, extra: str | None = None) -> dict:
    """Build info display response in markdown format.

    Args:
        title: Info display title.
        fields: Dict of field names to values.
        extra: Optional extra content to append.

    Returns:
        Markdown dict with formatted info display.
    """
    builder = markdown().heading(title, level=2)

    for key, value in fields.items():
        if value is not None:
            builder.text(f"**{key}:** {value}")

    if extra:
        builder.raw(extra)

    return builder.build()
