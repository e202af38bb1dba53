# Request body helpers and field validators
import re

from flask import request

from errors import BadRequest

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def validate_email(email):
    return isinstance(email, str) and EMAIL_PATTERN.match(email) is not None


def validate_password(password):
    return isinstance(password, str) and len(password) > 0


def get_json_body():
    """Return the request's JSON object or raise BadRequest"""
    if not request.is_json:
        raise BadRequest("Content-Type must be application/json")

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest("Malformed JSON body")
    return data


def require_fields(data, fields, message="Missing required fields"):
    # Empty strings count as missing; non-strings are malformed
    for key in fields:
        value = data.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise BadRequest(message)
        if not isinstance(value, str):
            raise BadRequest(f"Field '{key}' must be a string")
