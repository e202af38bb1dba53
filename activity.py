"""
Activity aggregation.

Merges posts, likes and shares into reverse-chronological timelines:

- ``user_activity``: everything a single user did
- ``feed``: everything done by the users the caller follows
- ``notifications``: replies, likes and shares on the caller's own posts

Record sets are concatenated most-recent-kind first (shares, likes, then
posts/replies) before a stable descending sort, so events sharing a timestamp
keep that order.
"""
from collections import namedtuple
from operator import attrgetter

from dto import post_to_dto, to_timestamp
from models import db, Follower, LikedPost, Post, SharedPost, User

POSTED = 'POSTED'
LIKED = 'LIKED'
SHARED = 'SHARED'

REPLY = 'reply'
LIKE = 'like'
SHARE = 'share'

Event = namedtuple('Event', ['kind', 'user_id', 'post', 'created_at'])


def _newest_first(events):
    return sorted(events, key=attrgetter('created_at'), reverse=True)


def _collect(user_ids):
    """All POSTED/LIKED/SHARED events performed by any of user_ids"""
    if not user_ids:
        return []

    shares = SharedPost.query.filter(SharedPost.user_id.in_(user_ids)).all()
    likes = LikedPost.query.filter(LikedPost.user_id.in_(user_ids)).all()
    posts = Post.query.filter(Post.author_id.in_(user_ids)).all()

    events = [Event(SHARED, s.user_id, s.post, s.created_at) for s in shares]
    events += [Event(LIKED, like.user_id, like.post, like.created_at) for like in likes]
    events += [Event(POSTED, p.author_id, p, p.created_at) for p in posts]
    return _newest_first(events)


def user_activity(user):
    return [
        {
            "postID": event.post.id,
            "timestamp": to_timestamp(event.created_at),
            "activity": event.kind,
        }
        for event in _collect([user.id])
    ]


def feed(user):
    followed_ids = [
        followed_id for (followed_id,) in
        db.session.query(Follower.followed_id).filter(Follower.follower_id == user.id).all()
    ]

    # A post can appear several times; shape each one once
    dtos = {}
    entries = []
    for event in _collect(followed_ids):
        if event.post.id not in dtos:
            dtos[event.post.id] = post_to_dto(event.post)
        entries.append({
            "post": dtos[event.post.id],
            "timestamp": to_timestamp(event.created_at),
            "activity": event.kind,
            "userId": event.user_id,
        })
    return entries


def notifications(user):
    """Replies, likes and shares on posts authored by user"""
    own_posts = db.select(Post.id).where(Post.author_id == user.id)

    shares = db.session.query(SharedPost, User)\
        .join(User, User.id == SharedPost.user_id)\
        .filter(SharedPost.post_id.in_(own_posts))\
        .all()
    likes = db.session.query(LikedPost, User)\
        .join(User, User.id == LikedPost.user_id)\
        .filter(LikedPost.post_id.in_(own_posts))\
        .all()
    replies = db.session.query(Post, User)\
        .join(User, User.id == Post.author_id)\
        .filter(Post.parent_id.in_(own_posts))\
        .all()

    items = [(SHARE, share.created_at, actor, share.post_id, None) for share, actor in shares]
    items += [(LIKE, like.created_at, actor, like.post_id, None) for like, actor in likes]
    items += [(REPLY, reply.created_at, actor, reply.id, reply.text_content) for reply, actor in replies]
    items.sort(key=lambda item: item[1], reverse=True)

    return [
        {
            "type": kind,
            "timestamp": to_timestamp(created_at),
            "from": actor.username,
            "post": post_id,
            "content": content,
        }
        for kind, created_at, actor, post_id, content in items
    ]
