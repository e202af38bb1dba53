# Database models
import re
from datetime import datetime

from flask_bcrypt import Bcrypt
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import validates

from errors import ValidationError
import forms

db = SQLAlchemy()
bcrypt = Bcrypt()

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,50}$")


class User(db.Model):
    __tablename__ = 'Users'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    nickname = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    bio = db.Column(db.Text)
    profile_pic = db.Column(db.String(512))
    profile_banner = db.Column(db.String(512))
    joined_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    posts = db.relationship('Post', backref='author', lazy=True, cascade='all, delete-orphan')
    likes = db.relationship('LikedPost', backref='user', lazy=True, cascade='all, delete-orphan')
    shares = db.relationship('SharedPost', backref='user', lazy=True, cascade='all, delete-orphan')
    following_edges = db.relationship('Follower', foreign_keys='Follower.follower_id',
                                      backref='follower', lazy=True, cascade='all, delete-orphan')
    follower_edges = db.relationship('Follower', foreign_keys='Follower.followed_id',
                                     backref='followed', lazy=True, cascade='all, delete-orphan')

    @property
    def password(self):
        raise AttributeError('password is write-only')

    @password.setter
    def password(self, plaintext):
        if not forms.validate_password(plaintext):
            raise ValidationError('password', 'Password must be a non-empty string')
        self.password_hash = bcrypt.generate_password_hash(plaintext).decode('utf-8')

    def validate_password(self, plaintext):
        """Constant-time check of a plaintext password against the stored hash"""
        if not forms.validate_password(plaintext):
            return False
        return bcrypt.check_password_hash(self.password_hash, plaintext)

    @validates('email')
    def _validate_email(self, key, email):
        if not forms.validate_email(email):
            raise ValidationError(key, 'The email address you entered is invalid')
        return email

    @validates('username')
    def _validate_username(self, key, username):
        if not isinstance(username, str) or not USERNAME_PATTERN.match(username):
            raise ValidationError(
                key, "The username may only contain letters, numbers, '.', '_' and '-'")
        return username

    @validates('nickname')
    def _validate_nickname(self, key, nickname):
        if not isinstance(nickname, str) or not nickname.strip():
            raise ValidationError(key, "Nickname must be a non-empty string")
        return nickname

    @validates('bio', 'profile_pic', 'profile_banner')
    def _validate_profile_text(self, key, value):
        if value is not None and not isinstance(value, str):
            raise ValidationError(key, f"Field '{key}' must be a string")
        return value

    def __repr__(self):
        return f'<User {self.username}>'


class Follower(db.Model):
    __tablename__ = 'Followers'
    id = db.Column(db.Integer, primary_key=True)
    follower_id = db.Column(db.Integer, db.ForeignKey('Users.id', ondelete='CASCADE'), nullable=False)
    followed_id = db.Column(db.Integer, db.ForeignKey('Users.id', ondelete='CASCADE'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('follower_id', 'followed_id', name='uq_follower_followed'),)


class Post(db.Model):
    __tablename__ = 'Posts'
    id = db.Column(db.Integer, primary_key=True)
    author_id = db.Column(db.Integer, db.ForeignKey('Users.id', ondelete='CASCADE'), nullable=False)
    parent_id = db.Column(db.Integer, db.ForeignKey('Posts.id', ondelete='CASCADE'), nullable=True)
    text_content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    replies = db.relationship('Post', backref=db.backref('parent', remote_side=[id]),
                              lazy=True, cascade='all, delete-orphan', order_by='Post.created_at')
    likes = db.relationship('LikedPost', backref='post', lazy=True, cascade='all, delete-orphan')
    shares = db.relationship('SharedPost', backref='post', lazy=True, cascade='all, delete-orphan')

    def __repr__(self):
        return f'<Post {self.id} by {self.author_id}>'


class LikedPost(db.Model):
    __tablename__ = 'LikedPosts'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('Users.id', ondelete='CASCADE'), nullable=False)
    post_id = db.Column(db.Integer, db.ForeignKey('Posts.id', ondelete='CASCADE'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('user_id', 'post_id', name='uq_user_post_like'),)


class SharedPost(db.Model):
    __tablename__ = 'SharedPosts'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('Users.id', ondelete='CASCADE'), nullable=False)
    post_id = db.Column(db.Integer, db.ForeignKey('Posts.id', ondelete='CASCADE'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (db.UniqueConstraint('user_id', 'post_id', name='uq_user_post_share'),)
