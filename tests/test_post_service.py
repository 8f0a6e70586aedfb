"""
tests/test_post_service.py — Posts, Likes & Comments Tests
============================================================
"""

from __future__ import annotations

import pytest
from conftest import make_user
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from chirp.database.models import Comment, PostLike
from chirp.services import post_service
from chirp.services.errors import InvalidContent, NotAuthorized, PostNotFound


@pytest.fixture
def users(db_engine):
    return db_engine, make_user(db_engine, "alice"), make_user(db_engine, "bob")


def _count(engine, model) -> int:
    with Session(engine) as session:
        return session.scalar(select(func.count()).select_from(model))


class TestCreatePost:
    def test_content_is_trimmed(self, users):
        engine, alice, _ = users
        post = post_service.create_post(engine, alice["id"], "  hello  ")
        assert post["content"] == "hello"
        assert post["author"]["username"] == "alice"
        assert post["likes"] == []
        assert post["comments"] == []
        assert post["image"] is None

    def test_keeps_image_reference(self, users):
        engine, alice, _ = users
        post = post_service.create_post(
            engine, alice["id"], "pic", image="/uploads/posts/post-1.png"
        )
        assert post["image"] == "/uploads/posts/post-1.png"

    @pytest.mark.parametrize("content", ["", "    ", None, "x" * 501])
    def test_rejects_bad_content(self, users, content):
        engine, alice, _ = users
        with pytest.raises(InvalidContent) as info:
            post_service.create_post(engine, alice["id"], content)
        assert info.value.field == "content"

    def test_accepts_exactly_500_chars(self, users):
        engine, alice, _ = users
        post = post_service.create_post(engine, alice["id"], "x" * 500)
        assert len(post["content"]) == 500


class TestToggleLike:
    def test_like_then_unlike(self, users):
        engine, alice, bob = users
        post = post_service.create_post(engine, alice["id"], "hello")

        first = post_service.toggle_like(engine, post["id"], bob["id"])
        assert first["liked"] is True
        assert first["post"]["likes"] == [bob["id"]]
        assert first["post"]["likesCount"] == 1

        second = post_service.toggle_like(engine, post["id"], bob["id"])
        assert second["liked"] is False
        assert second["post"]["likes"] == []

    def test_double_toggle_restores_like_set(self, users):
        engine, alice, bob = users
        post = post_service.create_post(engine, alice["id"], "hello")
        post_service.toggle_like(engine, post["id"], alice["id"])
        before = post_service.get_post(engine, post["id"])["likes"]

        post_service.toggle_like(engine, post["id"], bob["id"])
        post_service.toggle_like(engine, post["id"], bob["id"])

        after = post_service.get_post(engine, post["id"])["likes"]
        assert after == before
        assert len(after) == 1

    def test_each_user_counts_once(self, users):
        engine, alice, bob = users
        post = post_service.create_post(engine, alice["id"], "hello")
        post_service.toggle_like(engine, post["id"], alice["id"])
        result = post_service.toggle_like(engine, post["id"], bob["id"])
        assert sorted(result["post"]["likes"]) == sorted([alice["id"], bob["id"]])

    def test_missing_post(self, users):
        engine, _, bob = users
        with pytest.raises(PostNotFound):
            post_service.toggle_like(engine, 404, bob["id"])

    def test_post_deleted_mid_toggle(self, users, monkeypatch):
        engine, alice, bob = users
        post = post_service.create_post(engine, alice["id"], "hello")
        post_service.delete_post(engine, post["id"], alice["id"])
        # The existence check passes, then the row is gone by the time of the write.
        monkeypatch.setattr(post_service, "_post_exists", lambda session, post_id: True)
        with pytest.raises(PostNotFound):
            post_service.toggle_like(engine, post["id"], bob["id"])


class TestComments:
    def test_newest_first(self, users):
        engine, alice, bob = users
        post = post_service.create_post(engine, alice["id"], "hello")
        post_service.add_comment(engine, post["id"], bob["id"], "C1")
        result = post_service.add_comment(engine, post["id"], alice["id"], "C2")

        assert [c["text"] for c in result["comments"]] == ["C2", "C1"]
        assert result["comments"][0]["user"]["username"] == "alice"
        assert result["commentsCount"] == 2

    def test_text_is_trimmed(self, users):
        engine, alice, _ = users
        post = post_service.create_post(engine, alice["id"], "hello")
        result = post_service.add_comment(engine, post["id"], alice["id"], "  nice ")
        assert result["comments"][0]["text"] == "nice"

    @pytest.mark.parametrize("text", ["", "   ", "y" * 301])
    def test_rejects_bad_text(self, users, text):
        engine, alice, _ = users
        post = post_service.create_post(engine, alice["id"], "hello")
        with pytest.raises(InvalidContent) as info:
            post_service.add_comment(engine, post["id"], alice["id"], text)
        assert info.value.field == "text"

    def test_missing_post(self, users):
        engine, alice, _ = users
        with pytest.raises(PostNotFound):
            post_service.add_comment(engine, 404, alice["id"], "hi")


class TestDeletePost:
    def test_author_can_delete_with_children(self, users):
        engine, alice, bob = users
        post = post_service.create_post(engine, alice["id"], "hello")
        post_service.toggle_like(engine, post["id"], bob["id"])
        post_service.add_comment(engine, post["id"], bob["id"], "hi")

        post_service.delete_post(engine, post["id"], alice["id"])

        with pytest.raises(PostNotFound):
            post_service.get_post(engine, post["id"])
        assert _count(engine, PostLike) == 0
        assert _count(engine, Comment) == 0

    def test_other_user_cannot_delete(self, users):
        engine, alice, bob = users
        post = post_service.create_post(engine, alice["id"], "hello")
        with pytest.raises(NotAuthorized, match="Not authorized to delete this post"):
            post_service.delete_post(engine, post["id"], bob["id"])
        assert post_service.get_post(engine, post["id"])["id"] == post["id"]

    def test_missing_post(self, users):
        engine, alice, _ = users
        with pytest.raises(PostNotFound):
            post_service.delete_post(engine, 404, alice["id"])

    def test_releases_image(self, users, upload_dir):
        engine, alice, _ = users
        (upload_dir / "posts").mkdir()
        image = upload_dir / "posts" / "post-abc.png"
        image.write_bytes(b"png")
        post = post_service.create_post(
            engine, alice["id"], "pic", image="/uploads/posts/post-abc.png"
        )

        post_service.delete_post(engine, post["id"], alice["id"], upload_dir=upload_dir)
        assert not image.exists()

    def test_missing_image_file_does_not_block_delete(self, users, upload_dir):
        engine, alice, _ = users
        post = post_service.create_post(
            engine, alice["id"], "pic", image="/uploads/posts/never-written.png"
        )
        post_service.delete_post(engine, post["id"], alice["id"], upload_dir=upload_dir)
        with pytest.raises(PostNotFound):
            post_service.get_post(engine, post["id"])
