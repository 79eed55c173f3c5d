"""Render command.

PUBLIC API:
  - render: Render a local HTML file or inline body as the response for a URL
"""

from http import HTTPStatus
from pathlib import Path

from redom.app import app
from redom.commands._errors import check_connection, error_response
from redom.commands._utils import build_info_response, truncate_string
from redom.errors import RedomError
from redom.models import HttpRequest, HttpResponse
from redom.services.renderer import needs_render


def _reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


@app.command(display="markdown")
def render(
    state,
    url: str,
    file: str | None = None,
    body: str | None = None,
    status: int = 200,
    content_type: str = "text/html; charset=utf-8",
    max_chars: int = 5000,
) -> dict:
    """Render a response body in Chrome as if `url` had served it.

    Args:
        url: URL Chrome navigates to (never actually fetched)
        file: Path of a file holding the response body
        body: Inline response body (used when no file is given)
        status: Response status code
        content_type: Response Content-Type
        max_chars: Truncate displayed markup (0 for no limit)

    Examples:
        render("https://example.com/", file="page.html")
        render("https://example.com/", body="<script>document.write('hi')</script>")

    Returns:
        Original status line and headers with the rendered markup
    """
    if file:
        try:
            payload = Path(file).expanduser().read_bytes()
        except OSError as e:
            return error_response("custom", custom_message=f"Cannot read {file}: {e}")
    else:
        payload = (body or "").encode("utf-8")

    request = HttpRequest(url=url)
    response = HttpResponse(
        status_code=status,
        reason_phrase=_reason_phrase(status),
        headers=(("Content-Type", content_type),),
        body=payload,
    )

    if needs_render(response):
        if error := check_connection(state):
            return error

    try:
        result = state.service.render(request, response)
    except RedomError as e:
        return error_response("custom", custom_message=f"Render failed: {e}")

    markup = truncate_string(result.text, max_chars)
    return build_info_response(
        title="Rendered Response" if result.rendered else "Original Response",
        fields={
            "URL": result.final_url,
            "Status": f"{result.http_version} {result.status_code} {result.reason_phrase}".rstrip(),
            "Headers": ", ".join(f"{name}: {value}" for name, value in result.headers),
            "Load": "Timed out, partial DOM" if result.load_timed_out else None,
            "Body": f"{len(result.body)} bytes",
        },
        extra=f"```html\n{markup}\n```",
    )
