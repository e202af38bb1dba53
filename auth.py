# Token issuing and request authentication
from flask import current_app, jsonify
from flask_jwt_extended import JWTManager, create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from errors import BadRequest
from models import db, User

jwt = JWTManager()


def generate_auth_token(user):
    """Issue a signed access token for the given user"""
    return create_access_token(identity=user)


def extract_user(authorization):
    """Decode a 'Bearer <token>' header value into the user claims it carries"""
    scheme, _, token = (authorization or '').partition(' ')
    if scheme != 'Bearer' or not token:
        raise BadRequest("Authorization header must be 'Bearer <token>'")

    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        raise BadRequest(f"Invalid token: {e}")

    return {
        "id": int(claims['sub']),
        "username": claims.get('username'),
        "nickname": claims.get('nickname'),
        "email": claims.get('email'),
    }


@jwt.user_identity_loader
def user_identity(user):
    return str(user.id)


@jwt.additional_claims_loader
def user_claims(user):
    return {"username": user.username, "nickname": user.nickname, "email": user.email}


@jwt.user_lookup_loader
def load_user(_jwt_header, jwt_data):
    return db.session.get(User, int(jwt_data['sub']))


@jwt.user_lookup_error_loader
def user_lookup_error(_jwt_header, jwt_data):
    current_app.logger.info("Token for missing user %s rejected", jwt_data.get('sub'))
    return jsonify({"error": "User not found"}), 404


# Missing, malformed and expired credentials are all client errors
@jwt.unauthorized_loader
def missing_token(reason):
    return jsonify({"error": reason}), 400


@jwt.invalid_token_loader
def invalid_token(reason):
    return jsonify({"error": reason}), 400


@jwt.expired_token_loader
def expired_token(_jwt_header, _jwt_payload):
    return jsonify({"error": "Token has expired"}), 400
