import pytest
from bson import ObjectId

from database import COMMENT, LIKE, create_document
from schemas import Comment
from tests.utils import api_client, auth_headers, insert_video


@pytest.mark.asyncio
async def test_two_toggles_on_a_video_net_zero(alice, bob, mongo_db):
    video = insert_video(mongo_db, alice)
    url = f"/api/v1/likes/video/{video['_id']}"

    async with api_client() as client:
        first = await client.patch(url, headers=auth_headers(bob))
        assert first.status_code == 200
        assert first.json()["data"] == {"isLiked": True}
        assert first.json()["message"] == "Video liked successfully"
        assert mongo_db[LIKE].count_documents({"target": video["_id"], "likedBy": bob["_id"]}) == 1

        second = await client.patch(url, headers=auth_headers(bob))

    assert second.json()["data"] == {"isLiked": False}
    assert second.json()["message"] == "Video unliked successfully"
    assert mongo_db[LIKE].count_documents({}) == 0


@pytest.mark.asyncio
async def test_likes_are_tagged_with_their_target_type(alice, bob, mongo_db):
    video = insert_video(mongo_db, alice)
    comment = create_document(
        mongo_db, COMMENT, Comment(content="first", video=video["_id"], owner=bob["_id"]).to_mongo()
    )

    async with api_client() as client:
        await client.patch(f"/api/v1/likes/video/{video['_id']}", headers=auth_headers(alice))
        response = await client.patch(f"/api/v1/likes/comment/{comment['_id']}", headers=auth_headers(alice))

    assert response.json()["data"] == {"isLiked": True}
    assert response.json()["message"] == "Comment liked successfully"
    video_like = mongo_db[LIKE].find_one({"target": video["_id"]})
    comment_like = mongo_db[LIKE].find_one({"target": comment["_id"]})
    assert video_like["targetType"] == "video"
    assert comment_like["targetType"] == "comment"
    assert comment_like["likedBy"] == alice["_id"]


@pytest.mark.asyncio
async def test_like_missing_targets(bob):
    async with api_client() as client:
        video = await client.patch(f"/api/v1/likes/video/{ObjectId()}", headers=auth_headers(bob))
        comment = await client.patch(f"/api/v1/likes/comment/{ObjectId()}", headers=auth_headers(bob))
        malformed = await client.patch("/api/v1/likes/video/123", headers=auth_headers(bob))

    assert video.status_code == 404
    assert comment.status_code == 404
    assert comment.json()["message"] == "Comment not found"
    assert malformed.status_code == 400


@pytest.mark.asyncio
async def test_cannot_like_someone_elses_unpublished_video(alice, bob, mongo_db):
    video = insert_video(mongo_db, alice, published=False)

    async with api_client() as client:
        response = await client.patch(f"/api/v1/likes/video/{video['_id']}", headers=auth_headers(bob))

    assert response.status_code == 404
    assert mongo_db[LIKE].count_documents({}) == 0


@pytest.mark.asyncio
async def test_toggle_like_requires_authentication(alice, mongo_db):
    video = insert_video(mongo_db, alice)

    async with api_client() as client:
        response = await client.patch(f"/api/v1/likes/video/{video['_id']}")

    assert response.status_code == 401
