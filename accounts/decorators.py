"""
Access control for JSON endpoints.

Unlike django.contrib.auth's login_required these answer with JSON
status codes instead of redirecting to the login page.
"""
from functools import wraps

from opsdesk.api import BadRequest, json_error


def api_login_required(view_func):
    """401 for anonymous or deactivated users; BadRequest becomes a 400."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated or not request.user.is_active:
            return json_error("Authentication required", status=401)
        try:
            return view_func(request, *args, **kwargs)
        except BadRequest as e:
            return json_error(e.message, status=400, errors=e.errors)

    return wrapper


def admin_required(view_func):
    """Like api_login_required, and 403 unless the user is an administrator."""

    @wraps(view_func)
    def check_role(request, *args, **kwargs):
        if not request.user.is_administrator:
            return json_error("Administrator access required", status=403)
        return view_func(request, *args, **kwargs)

    return api_login_required(check_role)
