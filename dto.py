# Response shaping for users and posts
import calendar

from models import db, Follower, LikedPost, SharedPost


def to_timestamp(value):
    """Naive UTC datetime -> epoch milliseconds"""
    if value is None:
        return None
    return calendar.timegm(value.utctimetuple()) * 1000 + value.microsecond // 1000


def user_to_dto(user):
    followers_count = db.session.query(db.func.count(Follower.id))\
        .filter(Follower.followed_id == user.id).scalar()
    following_count = db.session.query(db.func.count(Follower.id))\
        .filter(Follower.follower_id == user.id).scalar()

    return {
        "id": user.id,
        "username": user.username,
        "nickname": user.nickname,
        "profilePic": user.profile_pic,
        "profileBanner": user.profile_banner,
        "bio": user.bio,
        "followers": followers_count,
        "following": following_count,
        "joinedDate": user.joined_date.isoformat() if user.joined_date else None,
    }


def user_to_handle(user):
    """Condensed user record used for listings and mentions"""
    return {
        "username": user.username,
        "nickname": user.nickname,
        "profilePic": user.profile_pic,
    }


def post_to_dto(post):
    likes_count = db.session.query(db.func.count(LikedPost.id))\
        .filter(LikedPost.post_id == post.id).scalar()
    shares_count = db.session.query(db.func.count(SharedPost.id))\
        .filter(SharedPost.post_id == post.id).scalar()
    author = post.author

    return {
        "id": post.id,
        "author": author.id,
        "username": author.username,
        "nickname": author.nickname,
        "profilePic": author.profile_pic,
        "text_content": post.text_content,
        "parent": post.parent_id,
        "timestamp": to_timestamp(post.created_at),
        "likes": likes_count,
        "shares": shares_count,
        "replies": [reply.id for reply in post.replies],
    }
