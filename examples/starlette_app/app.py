"""Starlette app -- serve tessera responses from ASGI handlers.

Run:
    uvicorn app:app --reload
"""

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.routing import Route

from tessera import MemoryFileSystem, Render
from tessera.integrations.starlette import html_response, json_response

render = Render(
    file_system=MemoryFileSystem(
        {
            "templates/layout.tmpl": "<html><body>{{ yield() }}</body></html>",
            "templates/users.tmpl": (
                "<ul>{% for user in users %}<li>{{ user }}</li>{% endfor %}</ul>"
            ),
        }
    ),
    layout="layout",
)

USERS = ["ada", "grace", "<script>"]


async def users_page(request: Request):
    return html_response(render, 200, "users", {"users": USERS})


async def users_api(request: Request):
    return json_response(render, 200, {"users": USERS})


app = Starlette(
    routes=[
        Route("/users", users_page),
        Route("/api/users", users_api),
    ]
)
