# API error types and their JSON rendering
from flask import jsonify


class APIError(Exception):
    """Base error carrying the HTTP status it maps to"""
    status_code = 500

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_response(self):
        return jsonify({"error": self.message}), self.status_code


class BadRequest(APIError):
    status_code = 400


class ValidationError(BadRequest):
    """Raised by model validators when a field value is rejected"""

    def __init__(self, field, message):
        super().__init__(message)
        self.field = field


class Unauthorized(APIError):
    status_code = 401


class Forbidden(APIError):
    status_code = 403


class NotFound(APIError):
    status_code = 404


class Conflict(APIError):
    status_code = 409
