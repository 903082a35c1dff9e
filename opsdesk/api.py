"""
Helpers shared by the JSON endpoints of every app.
"""
import json

from django.forms.models import model_to_dict
from django.http import JsonResponse


class BadRequest(Exception):
    """Request body could not be used; rendered as a 400 response."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


def parse_json(request) -> dict:
    """Decode a JSON object body, raising BadRequest on anything else."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise BadRequest("Request body must be valid JSON.")
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object.")
    return data


def json_error(message, status=400, errors=None):
    payload = {"message": message}
    if errors:
        payload["errors"] = errors
    return JsonResponse(payload, status=status)


def form_errors(form) -> dict:
    """Flatten Django form errors into ``field -> first message``."""
    return {field: [str(e) for e in errs][0] for field, errs in form.errors.items()}


def merged_form_data(instance, form_class, payload: dict) -> dict:
    """
    Current field values overlaid with ``payload``.

    Lets a ModelForm validate a partial (PATCH) update without treating
    omitted fields as blank.
    """
    fields = form_class._meta.fields
    data = model_to_dict(instance, fields=fields)
    for key, value in data.items():
        if hasattr(value, "pk"):
            data[key] = value.pk
    data.update({k: v for k, v in payload.items() if k in fields})
    return data
