"""Request Log Context — binds method and uri to every log record of a request.

Invariants:
    - Fields are bound for the duration of one request task only
    - Nothing is logged per request here (access logs belong to the server)
"""

from fastapi import FastAPI, Request

from userservice.infrastructure.observability import bind_log_context


def register_request_context(app: FastAPI) -> None:
    """Install the log-context middleware on the FastAPI app."""

    @app.middleware("http")
    async def add_log_context(request: Request, call_next):
        uri = request.url.path
        if request.url.query:
            uri = f"{uri}?{request.url.query}"
        with bind_log_context(method=request.method, uri=uri):
            return await call_next(request)
