# Routes for handling requests
from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_current_user, jwt_required
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

import activity
import services
from auth import generate_auth_token
from dto import post_to_dto, user_to_dto, user_to_handle
from forms import get_json_body
from models import db

# Create blueprints for different route categories
main_bp = Blueprint('main', __name__)
users_bp = Blueprint('users', __name__)
posts_bp = Blueprint('posts', __name__)
feed_bp = Blueprint('feed', __name__)


@main_bp.route('/', methods=['GET'])
def welcome():
    """Welcome endpoint for the API"""
    return jsonify({"message": "Social feed API"}), 200


@main_bp.route('/health', methods=['GET'])
def health():
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError:
        current_app.logger.exception("Database health check failed")
        return jsonify({"status": "unhealthy", "database": "unreachable"}), 503
    return jsonify({"status": "healthy", "database": "ok"}), 200


@main_bp.route('/search', methods=['GET'])
@jwt_required()
def search():
    users, posts = services.search(request.args.get('q'))
    return jsonify({
        "users": [user_to_dto(user) for user in users],
        "posts": [post_to_dto(post) for post in posts]
    }), 200


# Authentication Endpoints
@users_bp.route('/', methods=['POST'])
def signup():
    """User Registration Endpoint"""
    user = services.create_user(get_json_body())
    return jsonify({
        "username": user.username,
        "authToken": generate_auth_token(user)
    }), 201


@users_bp.route('/authenticate', methods=['POST'])
def authenticate():
    """User Login Endpoint"""
    user = services.authenticate(get_json_body())
    return jsonify({
        "username": user.username,
        "authToken": generate_auth_token(user)
    }), 200


# Profile Endpoints
@users_bp.route('/', methods=['GET'])
@jwt_required()
def list_users():
    """Handles of every user except the caller"""
    users = services.list_other_users(get_current_user())
    return jsonify({"usernames": [user_to_handle(user) for user in users]}), 200


@users_bp.route('/', methods=['PUT'])
@jwt_required()
def update_profile():
    """Update current user's profile"""
    user = services.update_user(get_current_user(), get_json_body())
    return jsonify({
        "message": "The profile has been updated.",
        "username": user.username,
        "authToken": generate_auth_token(user)
    }), 200


@users_bp.route('/', methods=['DELETE'])
@jwt_required()
def delete_profile():
    services.delete_user(get_current_user())
    return jsonify({"message": "The user has been deleted."}), 200


@users_bp.route('/<username>', methods=['GET'])
@jwt_required()
def get_user(username):
    user = services.get_user_by_username(username)
    return jsonify(user_to_dto(user)), 200


@users_bp.route('/<username>/activity', methods=['GET'])
@jwt_required()
def get_user_activity(username):
    user = services.get_user_by_username(username)
    return jsonify(activity.user_activity(user)), 200


# Follow Endpoints
@users_bp.route('/<username>/follow', methods=['POST'])
@jwt_required()
def follow(username):
    edge = services.follow_user(get_current_user(), username)
    return jsonify({
        "followerId": edge.follower_id,
        "followedId": edge.followed_id
    }), 201


@users_bp.route('/<username>/follow', methods=['DELETE'])
@jwt_required()
def unfollow(username):
    user = get_current_user()
    target = services.unfollow_user(user, username)
    return jsonify({
        "followerId": user.id,
        "followedId": target.id
    }), 200


@users_bp.route('/<username>/follow', methods=['GET'])
@jwt_required()
def get_follows(username):
    """Followers and followings of any user"""
    followers, following = services.get_follow_lists(username)
    return jsonify({
        "followers": [user_to_dto(user) for user in followers],
        "following": [user_to_dto(user) for user in following]
    }), 200


@users_bp.route('/<username>/follow/status', methods=['GET'])
@jwt_required()
def follow_status(username):
    is_following = services.is_following(get_current_user(), username)
    return jsonify({"isFollowing": is_following}), 200


# Post Endpoints
@posts_bp.route('/', methods=['POST'])
@jwt_required()
def create_post():
    post = services.create_post(get_current_user(), get_json_body())
    return jsonify(post_to_dto(post)), 201


@posts_bp.route('/<int:post_id>', methods=['GET'])
@jwt_required()
def get_post(post_id):
    return jsonify(post_to_dto(services.get_post(post_id))), 200


@posts_bp.route('/<int:post_id>', methods=['PUT'])
@jwt_required()
def update_post(post_id):
    post = services.update_post(get_current_user(), post_id, get_json_body())
    return jsonify(post_to_dto(post)), 200


@posts_bp.route('/<int:post_id>', methods=['DELETE'])
@jwt_required()
def delete_post(post_id):
    services.delete_post(get_current_user(), post_id)
    return jsonify({"message": "The post has been deleted."}), 200


@posts_bp.route('/<int:post_id>/replies', methods=['GET'])
@jwt_required()
def get_replies(post_id):
    return jsonify([post_to_dto(reply) for reply in services.get_replies(post_id)]), 200


@posts_bp.route('/<int:post_id>/like', methods=['POST'])
@jwt_required()
def like(post_id):
    record = services.like_post(get_current_user(), post_id)
    return jsonify({"userId": record.user_id, "postId": record.post_id}), 201


@posts_bp.route('/<int:post_id>/like', methods=['DELETE'])
@jwt_required()
def unlike(post_id):
    user = get_current_user()
    post = services.unlike_post(user, post_id)
    return jsonify({"userId": user.id, "postId": post.id}), 200


@posts_bp.route('/<int:post_id>/share', methods=['POST'])
@jwt_required()
def share(post_id):
    record = services.share_post(get_current_user(), post_id)
    return jsonify({"userId": record.user_id, "postId": record.post_id}), 201


@posts_bp.route('/<int:post_id>/share', methods=['DELETE'])
@jwt_required()
def unshare(post_id):
    user = get_current_user()
    post = services.unshare_post(user, post_id)
    return jsonify({"userId": user.id, "postId": post.id}), 200


# Aggregated Views
@feed_bp.route('/feed', methods=['GET'])
@jwt_required()
def get_feed():
    """Activity of every user the caller follows, newest first"""
    return jsonify(activity.feed(get_current_user())), 200


@feed_bp.route('/notifications', methods=['GET'])
@jwt_required()
def get_notifications():
    return jsonify(activity.notifications(get_current_user())), 200
