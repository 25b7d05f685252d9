"""Starlette / FastAPI integration.

Renders into a `ResponseRecorder` and hands the recorded status, headers and
body to a Starlette ``Response``:

    ```python
    from starlette.applications import Starlette
    from starlette.routing import Route

    from tessera import Render
    from tessera.integrations.starlette import html_response

    render = Render(layout="layout")

    async def home(request):
        return html_response(render, 200, "home", {"user": request.query_params.get("user")})

    app = Starlette(routes=[Route("/", home)])
    ```

Errors propagate to the framework's exception handling; nothing is
swallowed here.

"""

from __future__ import annotations

from typing import Any

from starlette.responses import Response

from tessera.options import HTMLOptions
from tessera.render import Render
from tessera.response import ResponseRecorder


def _response(rec: ResponseRecorder) -> Response:
    # Content-Type goes through as a header, verbatim.
    return Response(
        content=bytes(rec.body),
        status_code=int(rec.status),
        headers=dict(rec.headers),
    )


def html_response(
    render: Render,
    status: int,
    name: str,
    data: Any = None,
    html_options: HTMLOptions | None = None,
) -> Response:
    """Render the template ``name`` into a Starlette ``Response``."""
    rec = ResponseRecorder()
    render.html(rec, status, name, data, html_options)
    return _response(rec)


def json_response(render: Render, status: int, value: Any) -> Response:
    """Encode ``value`` with the renderer's JSON settings."""
    rec = ResponseRecorder()
    render.json(rec, status, value)
    return _response(rec)
