# User and post operations backing the HTTP routes
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from errors import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from forms import require_fields
from models import db, Follower, LikedPost, Post, SharedPost, User

logger = logging.getLogger(__name__)

# request key -> User attribute
PROFILE_FIELDS = {
    'nickname': 'nickname',
    'bio': 'bio',
    'profilePic': 'profile_pic',
    'profileBanner': 'profile_banner',
}

SEARCH_LIMIT = 20

LIKE_ESCAPE = "\\"


def _exists(model, **criteria):
    return model.query.filter_by(**criteria).first() is not None


def _commit(conflict_message):
    # Unique constraints are the last word on concurrent duplicates
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(conflict_message)


# Users

def create_user(data):
    require_fields(data, ['username', 'nickname', 'email', 'password'])

    user = User(
        username=data['username'],
        nickname=data['nickname'],
        email=data['email'],
        password=data['password'],
        bio=data.get('bio'),
        profile_pic=data.get('profilePic'),
        profile_banner=data.get('profileBanner'),
    )
    db.session.add(user)
    _commit("Username or email already exists")

    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return user


def authenticate(data):
    require_fields(data, ['email', 'password'], "Missing email or password")

    user = User.query.filter_by(email=data['email']).first()
    if user is None or not user.validate_password(data['password']):
        logger.warning("Failed login attempt for %s", data['email'])
        raise Unauthorized("Incorrect email or password")
    return user


def get_user_by_username(username):
    user = User.query.filter_by(username=username).first()
    if user is None:
        raise NotFound(f"User '{username}' not found")
    return user


def list_other_users(user):
    return User.query.filter(User.id != user.id).order_by(User.id).all()


def update_user(user, data):
    """Apply a partial profile update to user"""
    for key in ('username', 'email', 'password'):
        if data.get(key) is not None and not isinstance(data[key], str):
            raise BadRequest(f"Field '{key}' must be a string")

    new_username = data.get('username')
    if new_username and new_username != user.username:
        if User.query.filter_by(username=new_username).first():
            raise Conflict("Username already taken")
        user.username = new_username

    new_email = data.get('email')
    if new_email and new_email != user.email:
        if User.query.filter_by(email=new_email).first():
            raise Conflict("Email already registered")
        user.email = new_email

    if data.get('password'):
        user.password = data['password']

    for key, attr in PROFILE_FIELDS.items():
        if key not in data:
            continue
        if key == 'nickname' and not data[key]:
            raise BadRequest("Nickname cannot be empty")
        setattr(user, attr, data[key])

    _commit("Username or email already exists")
    logger.info("Updated profile of user %s", user.id)
    return user


def delete_user(user):
    user_id = user.id
    db.session.delete(user)
    db.session.commit()
    logger.info("Deleted user %s", user_id)


# Follow graph

def follow_user(follower, username):
    target = get_user_by_username(username)

    if _exists(Follower, follower_id=follower.id, followed_id=target.id):
        raise Conflict("Already following this user")

    edge = Follower(follower_id=follower.id, followed_id=target.id)
    db.session.add(edge)
    _commit("Already following this user")

    logger.info("User %s followed %s", follower.id, target.id)
    return edge


def unfollow_user(follower, username):
    """Remove the follow edge and return the user that was unfollowed"""
    target = get_user_by_username(username)

    edge = Follower.query.filter_by(follower_id=follower.id, followed_id=target.id).first()
    if edge is None:
        raise NotFound("Already not following this user")

    db.session.delete(edge)
    db.session.commit()

    logger.info("User %s unfollowed %s", follower.id, target.id)
    return target


def is_following(user, username):
    target = get_user_by_username(username)
    return _exists(Follower, follower_id=user.id, followed_id=target.id)


def get_follow_lists(username):
    """Return (followers, following) of the named user, oldest edge first"""
    target = get_user_by_username(username)

    followers = db.session.query(User)\
        .join(Follower, User.id == Follower.follower_id)\
        .filter(Follower.followed_id == target.id)\
        .order_by(Follower.created_at, Follower.id)\
        .all()

    following = db.session.query(User)\
        .join(Follower, User.id == Follower.followed_id)\
        .filter(Follower.follower_id == target.id)\
        .order_by(Follower.created_at, Follower.id)\
        .all()

    return followers, following


# Posts

def _post_id(value):
    if isinstance(value, bool) or not isinstance(value, (int, str)) or not str(value).isdigit():
        raise BadRequest("Post id must be a positive integer")
    return int(value)


def _text_content(data):
    text = data.get('text_content')
    if not isinstance(text, str) or not text.strip():
        raise BadRequest("Post content is required")
    return text


def get_post(post_id):
    post = db.session.get(Post, _post_id(post_id))
    if post is None:
        raise NotFound("Post not found")
    return post


def _owned_post(user, post_id):
    post = get_post(post_id)
    if post.author_id != user.id:
        raise Forbidden("You can only modify your own posts")
    return post


def create_post(author, data):
    text = _text_content(data)

    parent_id = None
    if data.get('parent') is not None:
        parent_id = get_post(data['parent']).id

    post = Post(author_id=author.id, parent_id=parent_id, text_content=text)
    db.session.add(post)
    db.session.commit()

    logger.info("User %s created post %s", author.id, post.id)
    return post


def update_post(user, post_id, data):
    post = _owned_post(user, post_id)
    post.text_content = _text_content(data)
    db.session.commit()
    return post


def delete_post(user, post_id):
    post = _owned_post(user, post_id)
    db.session.delete(post)
    db.session.commit()
    logger.info("User %s deleted post %s", user.id, post_id)


def get_replies(post_id):
    return get_post(post_id).replies


def _add_interaction(model, user, post_id, conflict_message):
    post = get_post(post_id)

    if _exists(model, user_id=user.id, post_id=post.id):
        raise Conflict(conflict_message)

    record = model(user_id=user.id, post_id=post.id)
    db.session.add(record)
    _commit(conflict_message)
    return record


def _remove_interaction(model, user, post_id, missing_message):
    post = get_post(post_id)

    record = model.query.filter_by(user_id=user.id, post_id=post.id).first()
    if record is None:
        raise NotFound(missing_message)

    db.session.delete(record)
    db.session.commit()
    return post


def like_post(user, post_id):
    return _add_interaction(LikedPost, user, post_id, "Already liked this post")


def unlike_post(user, post_id):
    return _remove_interaction(LikedPost, user, post_id, "Already not liking this post")


def share_post(user, post_id):
    return _add_interaction(SharedPost, user, post_id, "Already shared this post")


def unshare_post(user, post_id):
    return _remove_interaction(SharedPost, user, post_id, "Already not sharing this post")


# Search

def _contains_pattern(text):
    # Wildcards typed by the user match literally
    for char in (LIKE_ESCAPE, '%', '_'):
        text = text.replace(char, LIKE_ESCAPE + char)
    return f'%{text}%'


def search(query):
    """Case-insensitive match on user handles and post text"""
    query = (query or '').strip()
    if not query:
        raise BadRequest("Search query is required")

    pattern = _contains_pattern(query)
    users = User.query\
        .filter(or_(
            User.username.ilike(pattern, escape=LIKE_ESCAPE),
            User.nickname.ilike(pattern, escape=LIKE_ESCAPE)
        ))\
        .order_by(User.id)\
        .all()
    posts = Post.query\
        .filter(Post.text_content.ilike(pattern, escape=LIKE_ESCAPE))\
        .order_by(Post.created_at.desc())\
        .limit(SEARCH_LIMIT)\
        .all()
    return users, posts
