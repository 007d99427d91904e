import pytest
from bson import ObjectId

from database import PLAYLIST
from tests.utils import api_client, auth_headers, insert_video


async def create_playlist(client, user, name="Favorites", description="x"):
    return await client.post(
        "/api/v1/playlist", json={"name": name, "description": description}, headers=auth_headers(user)
    )


@pytest.mark.asyncio
async def test_create_playlist(alice):
    async with api_client() as client:
        response = await create_playlist(client, alice)

    assert response.status_code == 201
    data = response.json()["data"]
    assert ObjectId.is_valid(data["id"])
    assert data["name"] == "Favorites"
    assert data["description"] == "x"
    assert data["owner"] == str(alice["_id"])
    assert data["videos"] == []


@pytest.mark.asyncio
async def test_create_playlist_requires_name(alice, mongo_db):
    async with api_client() as client:
        response = await client.post("/api/v1/playlist", json={"description": "x"}, headers=auth_headers(alice))

    assert response.status_code == 400
    assert mongo_db[PLAYLIST].count_documents({}) == 0


@pytest.mark.asyncio
async def test_add_and_remove_videos(alice, bob, mongo_db):
    first = insert_video(mongo_db, bob, title="First")
    second = insert_video(mongo_db, bob, title="Second")

    async with api_client() as client:
        playlist = (await create_playlist(client, alice)).json()["data"]
        pid = playlist["id"]
        await client.patch(f"/api/v1/playlist/add-video/{pid}/{first['_id']}", headers=auth_headers(alice))
        added = await client.patch(f"/api/v1/playlist/add-video/{pid}/{second['_id']}", headers=auth_headers(alice))
        duplicate = await client.patch(f"/api/v1/playlist/add-video/{pid}/{first['_id']}", headers=auth_headers(alice))
        removed = await client.patch(f"/api/v1/playlist/remove-video/{pid}/{first['_id']}", headers=auth_headers(alice))

    assert added.status_code == 200
    assert added.json()["data"]["videos"] == [str(first["_id"]), str(second["_id"])]
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Video already exists in the playlist"
    assert removed.status_code == 200
    assert removed.json()["data"]["videos"] == [str(second["_id"])]
    assert mongo_db[PLAYLIST].find_one({"_id": ObjectId(pid)})["videos"] == [second["_id"]]


@pytest.mark.asyncio
async def test_non_owner_cannot_change_playlist(alice, bob, mongo_db):
    video = insert_video(mongo_db, alice)

    async with api_client() as client:
        playlist = (await create_playlist(client, alice)).json()["data"]
        pid = playlist["id"]
        add = await client.patch(f"/api/v1/playlist/add-video/{pid}/{video['_id']}", headers=auth_headers(bob))
        delete = await client.delete(f"/api/v1/playlist/{pid}", headers=auth_headers(bob))

    assert add.status_code == 403
    assert delete.status_code == 403
    stored = mongo_db[PLAYLIST].find_one({"_id": ObjectId(pid)})
    assert stored is not None
    assert stored["videos"] == []


@pytest.mark.asyncio
async def test_add_missing_video_to_playlist(alice):
    async with api_client() as client:
        playlist = (await create_playlist(client, alice)).json()["data"]
        response = await client.patch(
            f"/api/v1/playlist/add-video/{playlist['id']}/{ObjectId()}", headers=auth_headers(alice)
        )

    assert response.status_code == 404
    assert response.json()["message"] == "Video not found"


@pytest.mark.asyncio
async def test_delete_playlist(alice, mongo_db):
    async with api_client() as client:
        playlist = (await create_playlist(client, alice)).json()["data"]
        response = await client.delete(f"/api/v1/playlist/{playlist['id']}", headers=auth_headers(alice))
        again = await client.delete(f"/api/v1/playlist/{playlist['id']}", headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json()["message"] == "Playlist deleted successfully"
    assert mongo_db[PLAYLIST].count_documents({}) == 0
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_playlist_with_malformed_id(alice):
    async with api_client() as client:
        response = await client.get("/api/v1/playlist/nope", headers=auth_headers(alice))

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid playlist id"
