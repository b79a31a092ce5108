"""Service-layer tests against the in-memory repository."""

import pytest

from blog_api import settings
from blog_api.errors import (
    AtomicityFailure,
    DependencyFailure,
    Forbidden,
    InvalidInput,
    NotFound,
    Unauthenticated,
)
from blog_api.models import Comment, Role
from blog_api.policy import Caller
from blog_api.services import comments as comment_service
from blog_api.services import posts as post_service

AUTHOR = Caller(id=1, role=Role.AUTHOR.value)
READER = Caller(id=2, role=Role.USER.value)
ADMIN = Caller(id=3, role=Role.ADMIN.value)


def create_post(repo, published=False, caller=AUTHOR):
    return post_service.create_post(
        repo, caller, title="Hello world", content="Long enough content", published=published
    )


def add_comments(repo, post, count, author=READER):
    return [
        comment_service.create_comment(repo, post.id, author, f"comment {i}")
        for i in range(count)
    ]


class TestCreatePost:
    def test_defaults_to_draft(self, repo):
        post = post_service.create_post(repo, AUTHOR, title="Hello", content="Long enough content")
        assert post.published is False
        assert post.author_id == AUTHOR.id

    def test_plain_user_forbidden(self, repo):
        with pytest.raises(Forbidden):
            create_post(repo, caller=READER)

    def test_short_title_invalid(self, repo):
        with pytest.raises(InvalidInput, match="Title"):
            post_service.create_post(repo, AUTHOR, title="Hi", content="Long enough content")

    def test_short_content_invalid(self, repo):
        with pytest.raises(InvalidInput, match="Content"):
            post_service.create_post(repo, AUTHOR, title="Hello", content="short")


class TestGetPost:
    def test_draft_scenario(self, repo):
        post = create_post(repo, published=False)

        with pytest.raises(Forbidden):
            post_service.get_post(repo, post.id, READER)
        assert post_service.get_post(repo, post.id, AUTHOR)[0] is post
        assert post_service.get_post(repo, post.id, ADMIN)[0] is post

        post_service.toggle_publish(repo, post.id, AUTHOR)
        assert post_service.get_post(repo, post.id, READER)[0] is post

    def test_draft_anonymous_unauthenticated(self, repo):
        post = create_post(repo, published=False)
        with pytest.raises(Unauthenticated):
            post_service.get_post(repo, post.id, None)

    def test_missing_post(self, repo):
        with pytest.raises(NotFound):
            post_service.get_post(repo, 404, READER)

    def test_lookup_failure_is_dependency_failure(self, repo):
        post = create_post(repo, published=True)
        repo.fail_on = "get_post"
        with pytest.raises(DependencyFailure):
            post_service.get_post(repo, post.id, READER)


class TestListings:
    def test_list_published_only_with_counts(self, repo):
        published = create_post(repo, published=True)
        create_post(repo, published=False)
        add_comments(repo, published, 2)

        posts = post_service.list_published(repo)

        assert [p.id for p in posts] == [published.id]
        assert posts[0].comment_count == 2

    def test_dashboard_includes_drafts_of_caller_only(self, repo):
        draft = create_post(repo, published=False)
        live = create_post(repo, published=True)
        create_post(repo, published=True, caller=ADMIN)

        posts = post_service.list_author_posts(repo, AUTHOR)

        assert [p.id for p in posts] == [live.id, draft.id]


class TestMutatePost:
    def test_non_author_cannot_update(self, repo):
        post = create_post(repo, published=True)
        with pytest.raises(Forbidden):
            post_service.update_post(repo, post.id, READER, title="Hijacked")

    def test_admin_can_update(self, repo):
        post = create_post(repo, published=True)
        post_service.update_post(repo, post.id, ADMIN, title="Edited by admin")
        assert post.title == "Edited by admin"

    def test_update_leaves_omitted_fields(self, repo):
        post = create_post(repo, published=True)
        post_service.update_post(repo, post.id, AUTHOR, content="Replacement content")
        assert post.title == "Hello world"
        assert post.published is True

    def test_toggle_requires_rights(self, repo):
        post = create_post(repo, published=False)
        with pytest.raises(Forbidden):
            post_service.toggle_publish(repo, post.id, READER)
        assert post.published is False

    def test_missing_post_not_found_before_rights(self, repo):
        with pytest.raises(NotFound):
            post_service.update_post(repo, 404, READER, title="Whatever")


class TestDeletePost:
    def test_cascade_removes_all_comments(self, repo):
        post = create_post(repo, published=True)
        other = create_post(repo, published=True)
        add_comments(repo, post, 3)
        add_comments(repo, other, 1)

        removed = post_service.delete_post(repo, post.id, AUTHOR)

        assert removed == 3
        assert post.id not in repo.posts
        assert [c for c in repo.comments.values() if c.post_id == post.id] == []
        assert len(repo.comments) == 1

    def test_cascade_failure_keeps_post_and_comments(self, repo):
        post = create_post(repo, published=True)
        add_comments(repo, post, 2)
        repo.fail_on = "delete_comments_for_post"

        with pytest.raises(AtomicityFailure):
            post_service.delete_post(repo, post.id, AUTHOR)

        assert post.id in repo.posts
        assert len(repo.comments) == 2

    def test_post_delete_failure_restores_comments(self, repo):
        post = create_post(repo, published=True)
        add_comments(repo, post, 2)
        repo.fail_on = "delete_post"

        with pytest.raises(AtomicityFailure):
            post_service.delete_post(repo, post.id, AUTHOR)

        assert post.id in repo.posts
        assert len(repo.comments) == 2

    def test_concurrently_deleted_post_is_not_found(self, repo):
        post = create_post(repo, published=True)
        original_delete = repo.delete_post

        def vanish_first(post_id):
            # Another request removed the row between lookup and delete
            repo.posts.pop(post_id, None)
            return original_delete(post_id)

        repo.delete_post = vanish_first
        with pytest.raises(NotFound):
            post_service.delete_post(repo, post.id, AUTHOR)

    def test_second_delete_is_not_found(self, repo):
        post = create_post(repo, published=True)
        post_service.delete_post(repo, post.id, AUTHOR)
        with pytest.raises(NotFound):
            post_service.delete_post(repo, post.id, AUTHOR)

    def test_reader_cannot_delete(self, repo):
        post = create_post(repo, published=True)
        with pytest.raises(Forbidden):
            post_service.delete_post(repo, post.id, READER)
        assert post.id in repo.posts


class TestComments:
    def test_list_newest_first_stable_for_ties(self, repo):
        post = create_post(repo, published=True)
        first = Comment(content="first", post_id=post.id, author_id=READER.id, created_at=5)
        second = Comment(content="second", post_id=post.id, author_id=READER.id, created_at=5)
        newest = Comment(content="newest", post_id=post.id, author_id=READER.id, created_at=9)
        for comment in (first, second, newest):
            repo.add_comment(comment)

        listed = comment_service.list_comments(repo, post.id, None)

        assert [c.content for c in listed] == ["newest", "first", "second"]

    def test_list_on_draft_is_all_or_nothing(self, repo):
        post = create_post(repo, published=False)
        add_comments(repo, post, 2, author=AUTHOR)

        with pytest.raises(Unauthenticated):
            comment_service.list_comments(repo, post.id, None)
        with pytest.raises(Forbidden):
            comment_service.list_comments(repo, post.id, READER)
        assert len(comment_service.list_comments(repo, post.id, ADMIN)) == 2

    def test_create_length_boundary(self, repo):
        post = create_post(repo, published=True)
        with pytest.raises(InvalidInput):
            comment_service.create_comment(repo, post.id, READER, "ab")
        comment = comment_service.create_comment(repo, post.id, READER, "abc")
        assert comment.author_id == READER.id
        assert comment.post_id == post.id

    def test_create_respects_configured_minimum(self, repo, monkeypatch):
        monkeypatch.setattr(settings, "COMMENT_MIN_LENGTH", 10)
        post = create_post(repo, published=True)
        with pytest.raises(InvalidInput, match="10"):
            comment_service.create_comment(repo, post.id, READER, "too short")

    def test_invalid_content_is_never_stored(self, repo):
        post = create_post(repo, published=True)
        with pytest.raises(InvalidInput):
            comment_service.create_comment(repo, post.id, READER, "")
        assert repo.comments == {}

    def test_create_on_draft_forbidden_for_reader(self, repo):
        post = create_post(repo, published=False)
        with pytest.raises(Forbidden):
            comment_service.create_comment(repo, post.id, READER, "hello")

    def test_create_on_missing_post(self, repo):
        with pytest.raises(NotFound):
            comment_service.create_comment(repo, 404, READER, "hello")

    def test_post_author_moderates_comments(self, repo):
        post = create_post(repo, published=True)
        comment = comment_service.create_comment(repo, post.id, READER, "spam spam spam")

        comment_service.update_comment(repo, comment.id, AUTHOR, "[removed by author]")
        assert comment.content == "[removed by author]"

        comment_service.delete_comment(repo, comment.id, AUTHOR)
        assert comment.id not in repo.comments

    def test_unrelated_user_cannot_touch_comment(self, repo):
        post = create_post(repo, published=True)
        comment = comment_service.create_comment(repo, post.id, READER, "my comment")
        stranger = Caller(id=50, role=Role.AUTHOR.value)

        with pytest.raises(Forbidden):
            comment_service.update_comment(repo, comment.id, stranger, "edited")
        with pytest.raises(Forbidden):
            comment_service.delete_comment(repo, comment.id, stranger)

    def test_update_validates_length(self, repo):
        post = create_post(repo, published=True)
        comment = comment_service.create_comment(repo, post.id, READER, "my comment")
        with pytest.raises(InvalidInput):
            comment_service.update_comment(repo, comment.id, READER, "no")
        assert comment.content == "my comment"

    def test_missing_comment(self, repo):
        with pytest.raises(NotFound):
            comment_service.delete_comment(repo, 404, ADMIN)
