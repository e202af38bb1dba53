from datetime import datetime

import services
from dto import to_timestamp
from models import db, LikedPost, Post, SharedPost


def test_create_post(client, helper):
    user = helper.create_user('author')

    response = client.post('/posts', json={'text_content': 'Updog is the next big thing'},
                           headers=helper.auth_header(user))

    assert response.status_code == 201
    post = db.session.get(Post, response.json['id'])
    assert response.json == {
        'id': post.id,
        'author': user.id,
        'username': 'author',
        'nickname': 'author',
        'profilePic': None,
        'text_content': 'Updog is the next big thing',
        'parent': None,
        'timestamp': to_timestamp(post.created_at),
        'likes': 0,
        'shares': 0,
        'replies': [],
    }


def test_create_reply(client, helper):
    user = helper.create_user()
    parent = helper.create_post('parent', user.id)
    headers = helper.auth_header(user)

    response = client.post('/posts', json={'text_content': 'reply', 'parent': parent.id}, headers=headers)

    assert response.status_code == 201
    assert response.json['parent'] == parent.id
    parent_view = client.get(f'/posts/{parent.id}', headers=headers)
    assert parent_view.json['replies'] == [response.json['id']]


def test_create_post_requires_text(client, helper):
    user = helper.create_user()

    response = client.post('/posts', json={'text_content': '   '}, headers=helper.auth_header(user))

    assert response.status_code == 400
    assert response.json['error'] == 'Post content is required'


def test_create_reply_to_missing_parent(client, helper):
    user = helper.create_user()

    response = client.post('/posts', json={'text_content': 'hi', 'parent': 999},
                           headers=helper.auth_header(user))

    assert response.status_code == 404
    assert Post.query.count() == 0


def test_get_missing_post(client, helper):
    user = helper.create_user()

    response = client.get('/posts/999', headers=helper.auth_header(user))

    assert response.status_code == 404
    assert response.json['error'] == 'Post not found'


def test_only_author_may_edit_or_delete(client, helper):
    author = helper.create_user()
    other = helper.create_user()
    post = helper.create_post('original', author.id)
    headers = helper.auth_header(other)

    edit = client.put(f'/posts/{post.id}', json={'text_content': 'hijacked'}, headers=headers)
    delete = client.delete(f'/posts/{post.id}', headers=headers)

    assert edit.status_code == 403
    assert delete.status_code == 403
    assert db.session.get(Post, post.id).text_content == 'original'


def test_author_edits_and_deletes(client, helper):
    author = helper.create_user()
    post = helper.create_post('original', author.id)
    post_id = post.id
    headers = helper.auth_header(author)

    edit = client.put(f'/posts/{post_id}', json={'text_content': 'edited'}, headers=headers)
    assert edit.status_code == 200
    assert edit.json['text_content'] == 'edited'

    delete = client.delete(f'/posts/{post_id}', headers=headers)
    assert delete.status_code == 200
    assert delete.json['message'] == 'The post has been deleted.'
    assert client.get(f'/posts/{post_id}', headers=headers).status_code == 404


def test_replies_listing(client, helper):
    user = helper.create_user()
    parent = helper.create_post('parent', user.id)
    second = helper.create_post('second', user.id, parent.id, datetime(2021, 3, 14))
    first = helper.create_post('first', user.id, parent.id, datetime(2021, 3, 13))

    response = client.get(f'/posts/{parent.id}/replies', headers=helper.auth_header(user))

    assert response.status_code == 200
    assert [reply['id'] for reply in response.json] == [first.id, second.id]


class TestLike:
    def test_like_and_unlike(self, client, helper):
        user = helper.create_user()
        post = helper.create_post('text', user.id)
        headers = helper.auth_header(user)

        liked = client.post(f'/posts/{post.id}/like', headers=headers)
        assert liked.status_code == 201
        assert liked.json == {'userId': user.id, 'postId': post.id}
        assert client.get(f'/posts/{post.id}', headers=headers).json['likes'] == 1

        unliked = client.delete(f'/posts/{post.id}/like', headers=headers)
        assert unliked.status_code == 200
        assert LikedPost.query.count() == 0

    def test_like_twice(self, client, helper):
        user = helper.create_user()
        post = helper.create_post('text', user.id)
        headers = helper.auth_header(user)

        client.post(f'/posts/{post.id}/like', headers=headers)
        again = client.post(f'/posts/{post.id}/like', headers=headers)

        assert again.status_code == 409
        assert again.json['error'] == 'Already liked this post'

    def test_duplicate_like_caught_by_unique_constraint(self, client, helper, monkeypatch):
        user = helper.create_user()
        post = helper.create_post('text', user.id)
        helper.like_post(post.id, user.id)
        headers = helper.auth_header(user)
        monkeypatch.setattr(services, '_exists', lambda model, **criteria: False)

        again = client.post(f'/posts/{post.id}/like', headers=headers)

        assert again.status_code == 409
        assert again.json['error'] == 'Already liked this post'
        assert LikedPost.query.count() == 1
        # The session is usable again after the rollback
        assert client.get(f'/posts/{post.id}', headers=headers).json['likes'] == 1
        assert client.post(f'/posts/{post.id}/share', headers=headers).status_code == 201

    def test_unlike_not_liked(self, client, helper):
        user = helper.create_user()
        post = helper.create_post('text', user.id)

        response = client.delete(f'/posts/{post.id}/like', headers=helper.auth_header(user))

        assert response.status_code == 404


class TestShare:
    def test_share_missing_post(self, client, helper):
        user = helper.create_user('gandalf')
        post = helper.create_post('Test text', user.id)

        response = client.post(f'/posts/{post.id + 99}/share', headers=helper.auth_header(user))

        assert response.status_code == 404

    def test_share_existing_post(self, client, helper):
        user = helper.create_user('gandalf')
        post = helper.create_post('Test text', user.id)

        response = client.post(f'/posts/{post.id}/share', headers=helper.auth_header(user))

        assert response.status_code == 201
        assert SharedPost.query.filter_by(user_id=user.id, post_id=post.id).count() == 1

    def test_share_twice_and_unshare(self, client, helper):
        user = helper.create_user()
        post = helper.create_post('text', user.id)
        headers = helper.auth_header(user)

        client.post(f'/posts/{post.id}/share', headers=headers)
        again = client.post(f'/posts/{post.id}/share', headers=headers)
        removed = client.delete(f'/posts/{post.id}/share', headers=headers)
        removed_again = client.delete(f'/posts/{post.id}/share', headers=headers)

        assert again.status_code == 409
        assert removed.status_code == 200
        assert removed_again.status_code == 404
        assert removed_again.json['error'] == 'Already not sharing this post'


def test_search(client, helper):
    frodo = helper.create_user('frodo', nickname='Ring Bearer')
    helper.create_user('sam')
    helper.create_post('Off to #mordor', frodo.id)
    helper.create_post('Second breakfast', frodo.id)
    headers = helper.auth_header(frodo)

    by_nickname = client.get('/search?q=ring', headers=headers)
    by_tag = client.get('/search?q=%23mordor', headers=headers)
    blank = client.get('/search?q=', headers=headers)

    assert [u['username'] for u in by_nickname.json['users']] == ['frodo']
    assert [p['text_content'] for p in by_tag.json['posts']] == ['Off to #mordor']
    assert blank.status_code == 400


def test_search_wildcards_match_literally(client, helper):
    user = helper.create_user('snake_case', nickname='Snake')
    helper.create_user('snakeXcase', nickname='Other')
    helper.create_post('Progress: 100% done', user.id)
    helper.create_post('Nothing special here', user.id)
    headers = helper.auth_header(user)

    percent = client.get('/search?q=%25', headers=headers)
    underscore = client.get('/search?q=e_c', headers=headers)

    assert [p['text_content'] for p in percent.json['posts']] == ['Progress: 100% done']
    assert percent.json['users'] == []
    assert [u['username'] for u in underscore.json['users']] == ['snake_case']
    assert underscore.json['posts'] == []
