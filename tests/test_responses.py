import json
from datetime import datetime, timezone

from bson import ObjectId

from responses import NotFoundError, api_response, error_response, serialize


def test_serialize_renames_ids_and_converts_values():
    video_id, owner_id = ObjectId(), ObjectId()
    created = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)

    data = serialize({
        "_id": video_id,
        "createdAt": created,
        "owner": {"_id": owner_id, "username": "alice", "password": "hash", "refreshToken": "tok"},
        "videos": [video_id],
    })

    assert data == {
        "id": str(video_id),
        "createdAt": created.isoformat(),
        "owner": {"id": str(owner_id), "username": "alice"},
        "videos": [str(video_id)],
    }


def test_api_response_envelope():
    response = api_response({"_id": ObjectId("64b7f0c2a1b2c3d4e5f60718")}, "Created", 201)

    body = json.loads(response.body)
    assert response.status_code == 201
    assert body == {
        "statusCode": 201,
        "data": {"id": "64b7f0c2a1b2c3d4e5f60718"},
        "message": "Created",
        "success": True,
    }


def test_api_response_without_data_sends_empty_object():
    body = json.loads(api_response(message="Deleted").body)

    assert body["data"] == {}


def test_error_envelope():
    exc = NotFoundError("Video not found")

    body = json.loads(error_response(exc.status_code, exc.message).body)

    assert body == {"statusCode": 404, "message": "Video not found", "success": False, "errors": []}


def test_serialize_keeps_issued_tokens_next_to_a_stored_user():
    user_id = ObjectId()

    data = serialize({
        "user": {"_id": user_id, "username": "dave", "password": "hash", "refreshToken": "stored"},
        "accessToken": "access",
        "refreshToken": "issued",
    })

    assert data == {
        "user": {"id": str(user_id), "username": "dave"},
        "accessToken": "access",
        "refreshToken": "issued",
    }
