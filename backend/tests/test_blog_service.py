"""
Blogstack Backend — Blog Service Unit Tests
==============================================

What:  Tests for BlogService business rules.
How:   Mocked database session and a mocked FileService, so only the
       service's own decisions are under test (ownership, image replacement,
       cleanup on failure, pagination maths).
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import DatabaseError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.blog import Blog
from app.models.user import User
from app.schemas.blog import PaginationParams
from app.services.blog_service import BlogService
from app.services.file_service import COVER_FIELD, StoredImages, UploadedImage


def make_user(name: str = "Ada") -> User:
    return User(
        id=uuid.uuid4(),
        name=name,
        email=f"{name.lower()}@example.com",
        password_hash="x",
        created_at=datetime.now(timezone.utc),
    )


def make_blog(author: User, **overrides) -> Blog:
    now = datetime.now(timezone.utc)
    fields = dict(
        id=uuid.uuid4(),
        title="Hello",
        content="World",
        cover_image="/uploads/coverImage-1-1.png",
        content_images=["/uploads/contentImages-1-2.png", "/uploads/contentImages-1-3.png"],
        author=author,
        author_id=author.id,
        created_at=now,
        updated_at=now,
    )
    fields.update(overrides)
    return Blog(**fields)


def scalar_result(value):
    return MagicMock(scalar_one_or_none=MagicMock(return_value=value))


@pytest.fixture
def files():
    with patch("app.services.blog_service.file_service") as mock_files:
        mock_files.store_images = AsyncMock(return_value=StoredImages())
        mock_files.delete_images = AsyncMock()
        yield mock_files


class TestFieldValidation:

    def test_title_is_trimmed(self):
        assert BlogService.validate_fields("  Hello  ", "Body") == "Hello"

    def test_all_missing_fields_reported(self):
        with pytest.raises(ValidationError) as exc_info:
            BlogService.validate_fields("   ", None)

        assert exc_info.value.message == "Title is required"
        assert exc_info.value.errors == [
            {"field": "title", "msg": "Title is required"},
            {"field": "content", "msg": "Content is required"},
        ]

    def test_missing_content_only(self):
        with pytest.raises(ValidationError, match="Content is required"):
            BlogService.validate_fields("Title", "")


class TestBlogServiceGet:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_get_blog_found(self, mock_db_session):
        author = make_user()
        blog = make_blog(author)
        mock_db_session.execute.return_value = scalar_result(blog)

        result = await self.service.get_blog(mock_db_session, str(blog.id))

        assert result.id == blog.id
        assert result.author.name == "Ada"
        body = result.model_dump(by_alias=True)
        assert body["coverImage"] == blog.cover_image
        assert body["author"]["_id"] == author.id

    @pytest.mark.asyncio
    async def test_get_blog_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)
        with pytest.raises(NotFoundError, match="Blog not found"):
            await self.service.get_blog(mock_db_session, str(uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, mock_db_session):
        with pytest.raises(NotFoundError, match="Blog not found"):
            await self.service.get_blog(mock_db_session, "507f1f77bcf86cd799439011")
        mock_db_session.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_database_failure_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("down"))
        with pytest.raises(DatabaseError):
            await self.service.get_blog(mock_db_session, str(uuid.uuid4()))


class TestBlogServiceList:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_list_page_metadata(self, mock_db_session):
        author = make_user()
        page = [make_blog(author), make_blog(author)]
        rows = MagicMock()
        rows.scalars.return_value.all.return_value = page
        count = MagicMock(scalar=MagicMock(return_value=12))
        mock_db_session.execute.side_effect = [count, rows]

        result = await self.service.list_blogs(mock_db_session, PaginationParams(page=2, limit=5))

        assert len(result.blogs) == 2
        assert result.current_page == 2
        assert result.total_pages == 3
        assert result.total_blogs == 12

    @pytest.mark.asyncio
    async def test_list_empty(self, mock_db_session):
        count = MagicMock(scalar=MagicMock(return_value=0))
        mock_db_session.execute.side_effect = [count]

        result = await self.service.list_blogs(mock_db_session, PaginationParams())

        assert result.blogs == []
        assert result.total_pages == 0
        assert result.model_dump(by_alias=True)["totalBlogs"] == 0

    @pytest.mark.asyncio
    async def test_page_past_the_end_skips_page_query(self, mock_db_session):
        count = MagicMock(scalar=MagicMock(return_value=3))
        mock_db_session.execute.side_effect = [count]
        params = PaginationParams(page=99999999999999999999, limit=10)

        result = await self.service.list_blogs(mock_db_session, params)

        assert result.blogs == []
        assert result.total_blogs == 3
        assert result.total_pages == 1
        assert result.current_page == 99999999999999999999
        assert mock_db_session.execute.await_count == 1


class TestBlogServiceWrite:

    def setup_method(self):
        self.service = BlogService()

    @pytest.mark.asyncio
    async def test_create_blog(self, mock_db_session, files):
        author = make_user()
        files.store_images.return_value = StoredImages(
            cover_url="/uploads/coverImage-9-9.png", content_urls=["/uploads/contentImages-9-8.png"]
        )

        async def assign_defaults():
            blog = mock_db_session.add.call_args[0][0]
            blog.id = uuid.uuid4()
            blog.created_at = blog.updated_at = datetime.now(timezone.utc)

        mock_db_session.flush.side_effect = assign_defaults

        result = await self.service.create_blog(mock_db_session, author, "  Hi  ", "Body")

        assert result.title == "Hi"
        assert result.cover_image == "/uploads/coverImage-9-9.png"
        assert result.content_images == ["/uploads/contentImages-9-8.png"]
        assert result.author.id == author.id

    @pytest.mark.asyncio
    async def test_create_validation_runs_before_upload(self, mock_db_session, files):
        with pytest.raises(ValidationError):
            await self.service.create_blog(mock_db_session, make_user(), "", "Body")
        files.store_images.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_db_failure_removes_uploaded_images(self, mock_db_session, files):
        files.store_images.return_value = StoredImages(cover_url="/uploads/c.png", content_urls=["/uploads/d.png"])
        mock_db_session.flush.side_effect = OperationalError("INSERT", {}, Exception("disk full"))

        with pytest.raises(DatabaseError):
            await self.service.create_blog(mock_db_session, make_user(), "Title", "Body")

        files.delete_images.assert_awaited_once_with(["/uploads/c.png", "/uploads/d.png"])

    @pytest.mark.asyncio
    async def test_update_by_other_user_forbidden(self, mock_db_session, files):
        blog = make_blog(make_user("Ada"))
        mock_db_session.execute.return_value = scalar_result(blog)

        with pytest.raises(PermissionDeniedError, match="User not authorized"):
            await self.service.update_blog(mock_db_session, make_user("Eve"), str(blog.id), "T", "C")

        files.store_images.assert_not_called()
        assert blog.title == "Hello"

    @pytest.mark.asyncio
    async def test_update_new_cover_replaces_old_only(self, mock_db_session, files):
        author = make_user()
        blog = make_blog(author)
        old_cover, old_contents = blog.cover_image, list(blog.content_images)
        mock_db_session.execute.return_value = scalar_result(blog)
        files.store_images.return_value = StoredImages(cover_url="/uploads/coverImage-2-2.png")
        cover = UploadedImage(field=COVER_FIELD, filename="c.png", content_type="image/png", content=b"x")

        result = await self.service.update_blog(
            mock_db_session, author, str(blog.id), "New title", "New body", cover=cover
        )

        assert result.title == "New title"
        assert result.cover_image == "/uploads/coverImage-2-2.png"
        assert result.content_images == old_contents
        files.delete_images.assert_awaited_once_with([old_cover])

    @pytest.mark.asyncio
    async def test_update_new_content_images_replace_all_old(self, mock_db_session, files):
        author = make_user()
        blog = make_blog(author)
        old_cover, old_contents = blog.cover_image, list(blog.content_images)
        mock_db_session.execute.return_value = scalar_result(blog)
        files.store_images.return_value = StoredImages(content_urls=["/uploads/contentImages-5-5.png"])

        result = await self.service.update_blog(mock_db_session, author, str(blog.id), "T", "C")

        assert result.cover_image == old_cover
        assert result.content_images == ["/uploads/contentImages-5-5.png"]
        files.delete_images.assert_awaited_once_with(old_contents)

    @pytest.mark.asyncio
    async def test_update_without_images_keeps_them(self, mock_db_session, files):
        author = make_user()
        blog = make_blog(author)
        mock_db_session.execute.return_value = scalar_result(blog)

        result = await self.service.update_blog(mock_db_session, author, str(blog.id), "T", "C")

        assert result.cover_image == blog.cover_image
        assert len(result.content_images) == 2
        files.delete_images.assert_awaited_once_with([])

    @pytest.mark.asyncio
    async def test_delete_removes_row_and_images(self, mock_db_session, files):
        author = make_user()
        blog = make_blog(author)
        mock_db_session.execute.return_value = scalar_result(blog)

        result = await self.service.delete_blog(mock_db_session, author, str(blog.id))

        assert result.message == "Blog removed"
        mock_db_session.delete.assert_awaited_once_with(blog)
        files.delete_images.assert_awaited_once_with(blog.image_urls)

    @pytest.mark.asyncio
    async def test_delete_by_other_user_forbidden(self, mock_db_session, files):
        blog = make_blog(make_user("Ada"))
        mock_db_session.execute.return_value = scalar_result(blog)

        with pytest.raises(PermissionDeniedError):
            await self.service.delete_blog(mock_db_session, make_user("Eve"), str(blog.id))

        mock_db_session.delete.assert_not_called()
        files.delete_images.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_commit_failure_keeps_old_images(self, mock_db_session, files):
        author = make_user()
        blog = make_blog(author)
        mock_db_session.execute.return_value = scalar_result(blog)
        files.store_images.return_value = StoredImages(cover_url="/uploads/coverImage-7-7.png")
        mock_db_session.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))

        with pytest.raises(DatabaseError):
            await self.service.update_blog(mock_db_session, author, str(blog.id), "T", "C")

        # Only the new upload is removed; the committed row still uses the old files
        files.delete_images.assert_awaited_once_with(["/uploads/coverImage-7-7.png"])

    @pytest.mark.asyncio
    async def test_delete_commits_before_removing_images(self, mock_db_session, files):
        author = make_user()
        blog = make_blog(author)
        mock_db_session.execute.return_value = scalar_result(blog)
        calls = []
        mock_db_session.commit.side_effect = lambda: calls.append("commit")
        files.delete_images.side_effect = lambda urls: calls.append("delete_images")

        await self.service.delete_blog(mock_db_session, author, str(blog.id))

        assert calls == ["commit", "delete_images"]

    @pytest.mark.asyncio
    async def test_delete_commit_failure_keeps_images(self, mock_db_session, files):
        author = make_user()
        blog = make_blog(author)
        mock_db_session.execute.return_value = scalar_result(blog)
        mock_db_session.commit.side_effect = OperationalError("COMMIT", {}, Exception("connection lost"))

        with pytest.raises(DatabaseError):
            await self.service.delete_blog(mock_db_session, author, str(blog.id))

        files.delete_images.assert_not_called()
