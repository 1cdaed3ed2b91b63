"""
Wayfarer Backend - Comment and Photo Service Tests
====================================================

What:  MongoDB-backed comment and photo operations.
How:   The collections are MagicMocks with AsyncMock methods; assertions
       check both the returned records and the queries sent to the store.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
import uuid

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from wayfarer.exceptions import DocumentStoreError, NotFoundError, PermissionDeniedError, ValidationError
from wayfarer.schemas.comment import CommentCreate, CommentMetadata, CommentUpdate, ReplyCreate
from wayfarer.services.comment_service import comment_service
from wayfarer.services.photo_service import photo_service


def _comment_doc(spot_id, user_id, text="Lovely view", **extra):
    doc = {
        "_id": ObjectId(),
        "spotId": str(spot_id),
        "userId": str(user_id),
        "text": text,
        "metadata": {"device": "iPhone", "language": "pt-BR"},
        "replies": [],
        "createdAt": datetime.now(timezone.utc),
    }
    doc.update(extra)
    return doc


class TestCommentService:

    async def test_list_is_newest_first(self, documents, spot, user, make_cursor):
        docs = [_comment_doc(spot.id, user.id, "newer"), _comment_doc(spot.id, user.id, "older")]
        cursor = make_cursor(docs)
        documents.comments.find = MagicMock(return_value=cursor)

        comments = await comment_service.list_for_spot(documents, spot.id)

        documents.comments.find.assert_called_once_with({"spotId": str(spot.id)})
        cursor.sort.assert_called_once_with("createdAt", -1)
        assert [c.text for c in comments] == ["newer", "older"]
        assert comments[0].id == str(docs[0]["_id"])

    async def test_create_stores_camel_case_document(self, db_session, documents, spot, user):
        inserted = ObjectId()
        documents.comments.insert_one = AsyncMock(return_value=MagicMock(inserted_id=inserted))
        body = CommentCreate(text="Worth the climb", metadata=CommentMetadata(device="Pixel", language="en"))

        comment = await comment_service.create_comment(db_session, documents, spot.id, user, body)

        stored = documents.comments.insert_one.await_args.args[0]
        assert stored["spotId"] == str(spot.id)
        assert stored["userId"] == str(user.id)
        assert stored["metadata"] == {"device": "Pixel", "language": "en"}
        assert stored["replies"] == []
        assert comment.id == str(inserted)
        assert comment.model_dump(by_alias=True)["id"] == str(inserted)

    async def test_create_on_unknown_spot_is_404(self, db_session, documents, user):
        documents.comments.insert_one = AsyncMock()

        with pytest.raises(NotFoundError):
            await comment_service.create_comment(db_session, documents, uuid.uuid4(), user, CommentCreate(text="hi"))
        documents.comments.insert_one.assert_not_awaited()

    async def test_update_by_other_user_is_forbidden(self, documents, spot, user, other_user):
        doc = _comment_doc(spot.id, user.id)
        documents.comments.find_one = AsyncMock(return_value=doc)
        documents.comments.find_one_and_update = AsyncMock()

        with pytest.raises(PermissionDeniedError):
            await comment_service.update_comment(documents, str(doc["_id"]), other_user, CommentUpdate(text="edited"))
        documents.comments.find_one_and_update.assert_not_awaited()

    async def test_admin_can_delete_any_comment(self, documents, spot, user, admin):
        doc = _comment_doc(spot.id, user.id)
        documents.comments.find_one = AsyncMock(return_value=doc)
        documents.comments.delete_one = AsyncMock()

        result = await comment_service.delete_comment(documents, str(doc["_id"]), admin)

        documents.comments.delete_one.assert_awaited_once_with({"_id": doc["_id"]})
        assert result.message == "Comment deleted successfully"

    async def test_reply_is_pushed(self, documents, spot, user, other_user):
        doc = _comment_doc(spot.id, user.id)
        reply = {
            "_id": ObjectId(),
            "userId": str(other_user.id),
            "text": "Agreed",
            "createdAt": datetime.now(timezone.utc),
        }
        documents.comments.find_one_and_update = AsyncMock(return_value={**doc, "replies": [reply]})

        comment = await comment_service.add_reply(documents, str(doc["_id"]), other_user, ReplyCreate(text="Agreed"))

        update = documents.comments.find_one_and_update.await_args.args[1]
        assert update["$push"]["replies"]["text"] == "Agreed"
        assert isinstance(update["$push"]["replies"]["_id"], ObjectId)
        assert comment.replies[0].user_id == str(other_user.id)

    async def test_reply_to_missing_comment_is_404(self, documents, user):
        documents.comments.find_one_and_update = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await comment_service.add_reply(documents, str(ObjectId()), user, ReplyCreate(text="hello?"))

    async def test_malformed_id_is_400(self, documents, user):
        with pytest.raises(ValidationError, match="Invalid comment ID"):
            await comment_service.delete_comment(documents, "not-an-object-id", user)

    async def test_store_outage_becomes_document_store_error(self, documents, spot, make_cursor):
        cursor = make_cursor([])
        cursor.to_list.side_effect = ServerSelectionTimeoutError("no servers")
        documents.comments.find = MagicMock(return_value=cursor)

        with pytest.raises(DocumentStoreError):
            await comment_service.list_for_spot(documents, spot.id)


class TestPhotoService:

    async def test_upload_stores_file_and_document(self, db_session, documents, files, spot, user, sample_image_bytes):
        documents.photos.count_documents = AsyncMock(return_value=0)
        documents.photos.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))

        photo = await photo_service.upload_photo(
            db_session, documents, files, spot.id, user,
            filename="view.jpg", content_type="image/jpeg", content=sample_image_bytes, title=" Sunset ",
        )

        assert photo.title == "Sunset"
        assert photo.url == f"/uploads/{photo.filename}"
        assert (files.storage_root / photo.filename).exists()
        assert "diskPath" not in photo.model_dump(by_alias=True)

    async def test_photo_limit_is_enforced(self, db_session, documents, files, spot, user, sample_image_bytes):
        documents.photos.count_documents = AsyncMock(return_value=10)
        documents.photos.insert_one = AsyncMock()

        with pytest.raises(ValidationError, match="Maximum 10 photos per spot allowed"):
            await photo_service.upload_photo(
                db_session, documents, files, spot.id, user,
                filename="view.jpg", content_type="image/jpeg", content=sample_image_bytes,
            )
        documents.photos.insert_one.assert_not_awaited()
        assert list(files.storage_root.iterdir()) == []

    async def test_upload_that_overshoots_the_limit_withdraws_itself(
        self, db_session, documents, files, spot, user, sample_image_bytes
    ):
        # 9 before the upload, 11 after it: another upload landed in between
        documents.photos.count_documents = AsyncMock(side_effect=[9, 11])
        inserted_id = ObjectId()
        documents.photos.insert_one = AsyncMock(return_value=MagicMock(inserted_id=inserted_id))
        documents.photos.delete_one = AsyncMock()

        with pytest.raises(ValidationError, match="Maximum 10 photos per spot allowed"):
            await photo_service.upload_photo(
                db_session, documents, files, spot.id, user,
                filename="view.jpg", content_type="image/jpeg", content=sample_image_bytes,
            )

        documents.photos.delete_one.assert_awaited_once_with({"_id": inserted_id})
        assert list(files.storage_root.iterdir()) == []

    async def test_upload_that_reaches_the_limit_is_kept(
        self, db_session, documents, files, spot, user, sample_image_bytes
    ):
        documents.photos.count_documents = AsyncMock(side_effect=[9, 10])
        documents.photos.insert_one = AsyncMock(return_value=MagicMock(inserted_id=ObjectId()))
        documents.photos.delete_one = AsyncMock()

        photo = await photo_service.upload_photo(
            db_session, documents, files, spot.id, user,
            filename="view.jpg", content_type="image/jpeg", content=sample_image_bytes,
        )

        documents.photos.delete_one.assert_not_awaited()
        assert (files.storage_root / photo.filename).exists()

    async def test_failed_insert_removes_file(self, db_session, documents, files, spot, user, sample_image_bytes):
        documents.photos.count_documents = AsyncMock(return_value=0)
        documents.photos.insert_one = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))

        with pytest.raises(DocumentStoreError):
            await photo_service.upload_photo(
                db_session, documents, files, spot.id, user,
                filename="view.png", content_type="image/png", content=sample_image_bytes,
            )
        assert list(files.storage_root.iterdir()) == []

    async def test_delete_removes_document_then_file(self, documents, files, spot, user, sample_image_bytes):
        disk_path, filename = await files.validate_and_store("a.jpg", "image/jpeg", sample_image_bytes)
        oid = ObjectId()
        documents.photos.find_one = AsyncMock(return_value={
            "_id": oid,
            "spotId": str(spot.id),
            "userId": str(user.id),
            "filename": filename,
            "title": None,
            "diskPath": disk_path,
            "createdAt": datetime.now(timezone.utc),
        })
        documents.photos.delete_one = AsyncMock()

        result = await photo_service.delete_photo(documents, files, str(oid), user)

        assert result.message == "Photo deleted successfully"
        assert not (files.storage_root / filename).exists()
        documents.photos.delete_one.assert_awaited_once_with({"_id": oid})

    async def test_failed_document_delete_keeps_file(self, documents, files, spot, user, sample_image_bytes):
        disk_path, filename = await files.validate_and_store("a.jpg", "image/jpeg", sample_image_bytes)
        oid = ObjectId()
        documents.photos.find_one = AsyncMock(return_value={
            "_id": oid,
            "spotId": str(spot.id),
            "userId": str(user.id),
            "filename": filename,
            "title": None,
            "diskPath": disk_path,
            "createdAt": datetime.now(timezone.utc),
        })
        documents.photos.delete_one = AsyncMock(side_effect=ServerSelectionTimeoutError("down"))

        with pytest.raises(DocumentStoreError):
            await photo_service.delete_photo(documents, files, str(oid), user)

        assert (files.storage_root / filename).exists()

    async def test_delete_by_other_user_is_forbidden(self, documents, files, spot, user, other_user):
        oid = ObjectId()
        documents.photos.find_one = AsyncMock(return_value={
            "_id": oid,
            "spotId": str(spot.id),
            "userId": str(user.id),
            "filename": "x.jpg",
            "diskPath": "/nowhere/x.jpg",
            "createdAt": datetime.now(timezone.utc),
        })

        with pytest.raises(PermissionDeniedError):
            await photo_service.delete_photo(documents, files, str(oid), other_user)
