from __future__ import annotations

from urllib.parse import parse_qs


class MethodOverrideMiddleware:
    """
    Lets HTML forms issue PUT/PATCH/DELETE: a POST carrying `?_method=DELETE`
    (or an X-HTTP-Method-Override header) is dispatched as that method.
    The request body is never read here.
    """

    allowed_methods = frozenset({"PUT", "PATCH", "DELETE"})
    query_key = "_method"

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        if environ.get("REQUEST_METHOD", "").upper() == "POST":
            method = environ.get("HTTP_X_HTTP_METHOD_OVERRIDE", "")
            if not method:
                values = parse_qs(environ.get("QUERY_STRING", "")).get(self.query_key) or [""]
                method = values[0]
            method = method.strip().upper()
            if method in self.allowed_methods:
                environ["REQUEST_METHOD"] = method
        return self.app(environ, start_response)
