import itertools

import pytest

from app import create_app
from auth import generate_auth_token
from models import db, Follower, LikedPost, Post, SharedPost, User


@pytest.fixture
def app():
    """App bound to a fresh in-memory database."""
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


class Helper:
    """Factories for records the tests need, written straight to the database."""

    _sequence = itertools.count(1)

    def create_user(self, username=None, password='PASSWORD', email=None, **fields):
        n = next(self._sequence)
        username = username or f'user{n}'
        user = User(
            username=username,
            nickname=fields.pop('nickname', username),
            email=email or f'{username}@example.com',
            password=password,
            **fields
        )
        db.session.add(user)
        db.session.commit()
        return user

    def create_post(self, text, author_id, parent_id=None, created_at=None):
        post = Post(text_content=text, author_id=author_id, parent_id=parent_id)
        if created_at is not None:
            post.created_at = created_at
        db.session.add(post)
        db.session.commit()
        return post

    def like_post(self, post_id, user_id, created_at=None):
        return self._interaction(LikedPost, post_id, user_id, created_at)

    def share_post(self, post_id, user_id, created_at=None):
        return self._interaction(SharedPost, post_id, user_id, created_at)

    def create_followers(self, followed_id, follower_id):
        edge = Follower(followed_id=followed_id, follower_id=follower_id)
        db.session.add(edge)
        db.session.commit()
        return edge

    def auth_header(self, user):
        return {'Authorization': f'Bearer {generate_auth_token(user)}'}

    def _interaction(self, model, post_id, user_id, created_at):
        record = model(post_id=post_id, user_id=user_id)
        if created_at is not None:
            record.created_at = created_at
        db.session.add(record)
        db.session.commit()
        return record


@pytest.fixture
def helper(app):
    return Helper()
