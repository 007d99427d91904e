from httpx import ASGITransport, AsyncClient

from database import USER, VIDEO, create_document
from main import app
from schemas import Asset, User, Video
from security import create_access_token


def api_client() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


def auth_headers(user: dict) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


def insert_user(database, username: str, password_hash: str = "not-a-real-hash") -> dict:
    doc = User(
        username=username,
        email=f"{username}@example.com",
        full_name=username.title(),
        avatar=Asset(url=f"/static/avatars/{username}.png", public_id=f"avatars/{username}.png"),
        password=password_hash,
    ).to_mongo()
    return create_document(database, USER, doc)


def insert_video(database, owner: dict, title: str = "A video", published: bool = True, views: int = 0) -> dict:
    doc = Video(
        title=title,
        description=f"About {title}",
        video_file=Asset(url=f"/static/videos/{title}.mp4", public_id=f"videos/{title}.mp4"),
        thumbnail=Asset(url=f"/static/thumbnails/{title}.png", public_id=f"thumbnails/{title}.png"),
        duration=12.5,
        views=views,
        is_published=published,
        owner=owner["_id"],
    ).to_mongo()
    return create_document(database, VIDEO, doc)


def upload_files(video: bytes = b"\x00\x00\x00\x18ftypmp42", thumbnail: bytes = b"\x89PNG\r\n") -> dict:
    return {
        "videoFile": ("clip.mp4", video, "video/mp4"),
        "thumbnail": ("thumb.png", thumbnail, "image/png"),
    }
