from __future__ import annotations

import json
from typing import Any, Dict

from django.http import HttpRequest


def read_payload(request: HttpRequest) -> Dict[str, Any]:
    """
    Return the request body as a dict, whatever the client sent.

    - `application/json` bodies are decoded (must be a JSON object)
    - anything else (form-encoded, multipart) falls back to `request.POST`
    - GET requests read the query string
    - Raises ValueError for a malformed JSON body
    """
    if request.method == 'GET':
        return request.GET

    if request.content_type == 'application/json':
        if not request.body:
            return {}
        try:
            payload = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValueError('Request body is not valid JSON') from exc
        if not isinstance(payload, dict):
            raise ValueError('Request body must be a JSON object')
        return payload

    return request.POST


def form_error_message(form) -> str:
    """
    Flatten a bound form's errors into one user-facing sentence.

    Field errors are prefixed with the field name (`price: Ensure this value is
    greater than or equal to 0.`); non-field errors are used as-is.
    """
    messages = []
    for field, errors in form.errors.items():
        for error in errors:
            messages.append(error if field == '__all__' else f'{field}: {error}')
    return ' '.join(messages) or 'Invalid input'
