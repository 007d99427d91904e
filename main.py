import asyncio
import os
import sys
from contextlib import asynccontextmanager
from typing import Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, FastAPI, File, Form, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError

from database import (
    COMMENT,
    LIKE,
    PLAYLIST,
    SUBSCRIPTION,
    USER,
    VIDEO,
    create_document,
    db,
    ensure_indexes,
    get_db,
    objid,
    toggle_document,
    update_document,
)
from pagination import paginate
from pipelines import (
    channel_subscribers_pipeline,
    comment_list_pipeline,
    liked_videos_pipeline,
    playlist_detail_pipeline,
    subscribed_channels_pipeline,
    user_playlists_pipeline,
    video_detail_pipeline,
    video_list_pipeline,
    watch_history_pipeline,
)
from responses import (
    ApiError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    api_response,
    format_errors,
    register_exception_handlers,
)
from schemas import (
    Asset,
    Comment,
    CommentRequest,
    Like,
    LikeTarget,
    LoginRequest,
    Playlist,
    PlaylistRequest,
    Subscription,
    User,
    Video,
)
from security import (
    create_access_token,
    create_refresh_token,
    ensure_owner,
    get_current_user,
    get_optional_user,
    hash_password,
    is_owner,
    principal_id,
    verify_password,
)
from storage import LocalAssetStore, asset_store, get_asset_store

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")
LOG_ROTATION = os.getenv("LOG_ROTATION", "1 day")
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

COOKIE_OPTIONS = {"httponly": True, "secure": True}


def setup_logging():
    logger.remove()
    logger.add(sys.stderr, level=LOG_LEVEL, format=LOG_FORMAT)
    if LOG_FILE:
        logger.add(LOG_FILE, level=LOG_LEVEL, rotation=LOG_ROTATION, compression="gz", format=LOG_FORMAT)


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(db)
    yield


app = FastAPI(title="VideoTube API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Uploaded assets are served from the asset store root
app.mount("/static", StaticFiles(directory=asset_store.root), name="static")

register_exception_handlers(app)


# -------------------- Helpers --------------------

async def stage_uploads(store: LocalAssetStore, *uploads: Optional[UploadFile]) -> list:
    """Stage every upload that was sent (None for the rest)."""
    paths = []
    try:
        for upload in uploads:
            paths.append(await store.stage(upload) if upload is not None and upload.filename else None)
    except OSError as e:
        store.discard_staged(*paths)
        logger.exception(f"Staging uploads failed: {e}")
        raise ApiError(500, "Failed to receive uploaded files")
    return paths


def store_staged(store: LocalAssetStore, local_path: str, folder: str) -> dict:
    try:
        return store.store(local_path, folder)
    except OSError as e:
        logger.exception(f"Asset upload to '{folder}' failed: {e}")
        raise ApiError(500, f"Failed to upload {os.path.basename(local_path)}")


def discard_assets(store: LocalAssetStore, *assets: Optional[dict]) -> None:
    for asset in assets:
        if asset:
            store.remove(asset.get("public_id"))


def as_asset(stored: dict) -> Asset:
    return Asset(url=stored["url"], public_id=stored["public_id"])


def find_or_404(database, collection: str, _id: ObjectId, label: str, projection: Optional[dict] = None) -> dict:
    doc = database[collection].find_one({"_id": _id}, projection)
    if not doc:
        raise NotFoundError(f"{label} not found")
    return doc


def find_visible_video(database, video_id: ObjectId, user: Optional[dict]) -> dict:
    """Unpublished videos only exist for their owner."""
    video = database[VIDEO].find_one({"_id": video_id})
    if not video or (not video.get("isPublished") and not is_owner(video, user)):
        raise NotFoundError("Video not found")
    return video


def aggregate_one(collection, pipeline: list) -> Optional[dict]:
    return next(iter(collection.aggregate(pipeline)), None)


# -------------------- Basic Routes --------------------
@app.get("/")
def read_root():
    return {"message": "Video Sharing Backend is running"}


@app.get("/test")
def test_database(database=Depends(get_db)):
    info = {
        "backend": "running",
        "database_connected": False,
        "collections": []
    }
    try:
        info["collections"] = database.list_collection_names()
        info["database_connected"] = True
    except PyMongoError as e:
        logger.warning(f"Database check failed: {e}")
        info["error"] = str(e)
    return info


# -------------------- Users --------------------
user_router = APIRouter(prefix="/api/v1/users", tags=["users"])


def find_existing_user(database, username: str, email: str) -> Optional[dict]:
    return database[USER].find_one({"$or": [{"email": email}, {"username": username}]}, {"_id": 1})


def create_user(
    database,
    store: LocalAssetStore,
    full_name: str,
    email: str,
    username: str,
    password: str,
    avatar_path: str,
    cover_path: Optional[str],
) -> dict:
    try:
        if find_existing_user(database, username, email):
            raise ConflictError("Username or email already exists")
        password_hash = hash_password(password)

        avatar_asset = store_staged(store, avatar_path, "avatars")
        cover_asset = None
        try:
            if cover_path:
                cover_asset = store_staged(store, cover_path, "covers")
            doc = User(
                username=username,
                email=email,
                full_name=full_name,
                avatar=as_asset(avatar_asset),
                cover_image=as_asset(cover_asset) if cover_asset else None,
                password=password_hash,
            ).to_mongo()
            return create_document(database, USER, doc)
        except ValidationError as e:
            discard_assets(store, avatar_asset, cover_asset)
            raise BadRequestError("Invalid user data", format_errors(e.errors()))
        except DuplicateKeyError:
            # a concurrent registration took the name after the check above
            discard_assets(store, avatar_asset, cover_asset)
            raise ConflictError("Username or email already exists")
        except (ApiError, PyMongoError):
            discard_assets(store, avatar_asset, cover_asset)
            raise
    finally:
        store.discard_staged(avatar_path, cover_path)


@user_router.post("/register")
async def register(
    full_name: str = Form(..., alias="fullName"),
    email: str = Form(...),
    username: str = Form(...),
    password: str = Form(...),
    avatar: UploadFile = File(...),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    database=Depends(get_db),
    store: LocalAssetStore = Depends(get_asset_store),
):
    if any(not field.strip() for field in (full_name, email, username, password)):
        raise BadRequestError("All fields are required")

    avatar_path, cover_path = await stage_uploads(store, avatar, cover_image)
    if avatar_path is None:
        store.discard_staged(cover_path)
        raise BadRequestError("Avatar file is required")

    # bcrypt, pymongo and file moves all block, keep them off the event loop
    user = await asyncio.to_thread(
        create_user,
        database,
        store,
        full_name.strip(),
        email.strip().lower(),
        username.strip().lower(),
        password,
        avatar_path,
        cover_path,
    )
    logger.info(f"User registered: {user['username']} ({user['_id']})")
    return api_response(user, "User registered successfully", 201)


@user_router.post("/login")
def login(payload: LoginRequest, database=Depends(get_db)):
    if payload.email:
        query = {"email": payload.email.lower()}
    else:
        query = {"username": payload.username.strip().lower()}

    user = database[USER].find_one(query)
    if not user:
        raise NotFoundError("User does not exist")
    if not verify_password(payload.password, user.get("password", "")):
        raise UnauthorizedError("Invalid credentials")

    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user)
    database[USER].update_one({"_id": user["_id"]}, {"$set": {"refreshToken": refresh_token}})
    logger.info(f"User logged in: {user['username']}")

    response = api_response(
        {"user": user, "accessToken": access_token, "refreshToken": refresh_token},
        "User logged in successfully",
    )
    response.set_cookie("accessToken", access_token, **COOKIE_OPTIONS)
    response.set_cookie("refreshToken", refresh_token, **COOKIE_OPTIONS)
    return response


@user_router.post("/logout")
def logout(user: dict = Depends(get_current_user), database=Depends(get_db)):
    database[USER].update_one({"_id": user["_id"]}, {"$unset": {"refreshToken": ""}})
    response = api_response({}, "User logged out")
    response.delete_cookie("accessToken", **COOKIE_OPTIONS)
    response.delete_cookie("refreshToken", **COOKIE_OPTIONS)
    return response


@user_router.get("/current-user")
def current_user(user: dict = Depends(get_current_user)):
    return api_response(user, "Current user fetched successfully")


@user_router.get("/history")
def watch_history(user: dict = Depends(get_current_user), database=Depends(get_db)):
    doc = aggregate_one(database[USER], watch_history_pipeline(user["_id"]))
    history = doc.get("watchHistory", []) if doc else []
    return api_response(history, "Watch history fetched successfully")


# -------------------- Videos --------------------
video_router = APIRouter(prefix="/api/v1/videos", tags=["videos"])


@video_router.get("")
def list_videos(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    query: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_type: Optional[str] = Query(None, alias="sortType"),
    user_id: Optional[str] = Query(None, alias="userId"),
    database=Depends(get_db),
):
    owner_id = objid(user_id, "user") if user_id else None
    pipeline = video_list_pipeline(owner_id, query, sort_by, sort_type)
    videos = paginate(database[VIDEO], pipeline, page, limit)
    return api_response(videos, "Videos fetched successfully")


@video_router.post("")
async def publish_video(
    title: str = Form(...),
    description: str = Form(...),
    duration: Optional[float] = Form(None),
    video_file: UploadFile = File(..., alias="videoFile"),
    thumbnail: UploadFile = File(...),
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
    store: LocalAssetStore = Depends(get_asset_store),
):
    title, description = title.strip(), description.strip()
    if not title or not description:
        raise BadRequestError("Both title and description are required")

    video_path, thumbnail_path = await stage_uploads(store, video_file, thumbnail)
    if video_path is None or thumbnail_path is None:
        store.discard_staged(video_path, thumbnail_path)
        raise BadRequestError("Both video file and thumbnail are required")

    video = await asyncio.to_thread(
        save_video, database, store, user["_id"], title, description, duration, video_path, thumbnail_path
    )
    logger.info(f"Video published: {video['_id']} by {user['_id']}")
    return api_response(video, "Video published successfully", 201)


def save_video(
    database,
    store: LocalAssetStore,
    owner_id: ObjectId,
    title: str,
    description: str,
    duration: Optional[float],
    video_path: str,
    thumbnail_path: str,
) -> dict:
    try:
        video_asset = store_staged(store, video_path, "videos")
        try:
            thumbnail_asset = store_staged(store, thumbnail_path, "thumbnails")
        except ApiError:
            discard_assets(store, video_asset)
            raise

        try:
            doc = Video(
                title=title,
                description=description,
                video_file=as_asset(video_asset),
                thumbnail=as_asset(thumbnail_asset),
                duration=video_asset.get("duration") or duration or 0,
                owner=owner_id,
                is_published=True,
            ).to_mongo()
            return create_document(database, VIDEO, doc)
        except ValidationError as e:
            discard_assets(store, video_asset, thumbnail_asset)
            raise BadRequestError("Invalid video data", format_errors(e.errors()))
        except PyMongoError:
            discard_assets(store, video_asset, thumbnail_asset)
            raise
    finally:
        store.discard_staged(video_path, thumbnail_path)


@video_router.get("/video/{video_id}")
def get_video(video_id: str, user: Optional[dict] = Depends(get_optional_user), database=Depends(get_db)):
    vid = objid(video_id, "video")
    find_visible_video(database, vid, user)

    # Not atomic with the read below: a crash in between leaves the count bumped
    database[VIDEO].update_one({"_id": vid}, {"$inc": {"views": 1}})
    if user:
        database[USER].update_one({"_id": user["_id"]}, {"$addToSet": {"watchHistory": vid}})

    video = aggregate_one(database[VIDEO], video_detail_pipeline(vid, principal_id(user)))
    if not video:
        raise NotFoundError("Video not found")
    return api_response(video, "Video fetched successfully")


@video_router.patch("/video/{video_id}")
async def update_video(
    video_id: str,
    title: str = Form(...),
    description: str = Form(...),
    thumbnail: Optional[UploadFile] = File(None),
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
    store: LocalAssetStore = Depends(get_asset_store),
):
    vid = objid(video_id, "video")
    title, description = title.strip(), description.strip()
    if not title or not description:
        raise BadRequestError("Both title and description are required")

    (thumbnail_path,) = await stage_uploads(store, thumbnail)
    updated = await asyncio.to_thread(
        apply_video_update, database, store, user, vid, {"title": title, "description": description}, thumbnail_path
    )
    return api_response(updated, "Video updated successfully")


def apply_video_update(
    database,
    store: LocalAssetStore,
    user: dict,
    vid: ObjectId,
    changes: dict,
    thumbnail_path: Optional[str],
) -> dict:
    try:
        video = find_or_404(database, VIDEO, vid, "Video")
        ensure_owner(video, user, "update this video")

        new_thumbnail = None
        if thumbnail_path:
            new_thumbnail = store_staged(store, thumbnail_path, "thumbnails")
            changes = {**changes, "thumbnail": as_asset(new_thumbnail).to_mongo()}

        try:
            updated = update_document(database, VIDEO, vid, {"$set": changes})
        except PyMongoError:
            discard_assets(store, new_thumbnail)
            raise
        if not updated:
            discard_assets(store, new_thumbnail)
            raise NotFoundError("Video not found")

        # The old thumbnail goes only once the record points at the new one
        if new_thumbnail:
            discard_assets(store, video.get("thumbnail"))
        return updated
    finally:
        store.discard_staged(thumbnail_path)


@video_router.delete("/video/{video_id}")
def delete_video(
    video_id: str,
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
    store: LocalAssetStore = Depends(get_asset_store),
):
    vid = objid(video_id, "video")
    video = find_or_404(database, VIDEO, vid, "Video")
    ensure_owner(video, user, "delete this video")

    if not database[VIDEO].delete_one({"_id": vid}).deleted_count:
        raise NotFoundError("Video not found")

    comment_ids = [c["_id"] for c in database[COMMENT].find({"video": vid}, {"_id": 1})]
    database[LIKE].delete_many({
        "$or": [
            {"targetType": LikeTarget.VIDEO.value, "target": vid},
            {"targetType": LikeTarget.COMMENT.value, "target": {"$in": comment_ids}},
        ]
    })
    database[COMMENT].delete_many({"video": vid})
    database[PLAYLIST].update_many({"videos": vid}, {"$pull": {"videos": vid}})
    database[USER].update_many({"watchHistory": vid}, {"$pull": {"watchHistory": vid}})

    store.remove(video.get("videoFile", {}).get("public_id"))
    store.remove(video.get("thumbnail", {}).get("public_id"))

    logger.info(f"Video deleted: {vid} by {user['_id']}")
    return api_response({}, "Video deleted successfully")


@video_router.patch("/toggle-public-status/{video_id}")
def toggle_publish_status(video_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    vid = objid(video_id, "video")
    video = find_or_404(database, VIDEO, vid, "Video")
    ensure_owner(video, user, "update this video")

    updated = update_document(database, VIDEO, vid, {"$set": {"isPublished": not video.get("isPublished", False)}})
    if not updated:
        raise NotFoundError("Video not found")
    logger.info(f"Video {vid} isPublished={updated['isPublished']}")
    return api_response(updated, "Video status updated successfully")


# -------------------- Comments --------------------
comment_router = APIRouter(prefix="/api/v1/comments", tags=["comments"])


@comment_router.get("/video/{video_id}")
def list_comments(
    video_id: str,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
):
    vid = objid(video_id, "video")
    find_visible_video(database, vid, user)
    comments = paginate(database[COMMENT], comment_list_pipeline(vid, principal_id(user)), page, limit)
    return api_response(comments, "Comments fetched successfully")


@comment_router.post("/video/{video_id}")
def add_comment(
    video_id: str,
    payload: CommentRequest,
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
):
    vid = objid(video_id, "video")
    find_visible_video(database, vid, user)
    doc = Comment(content=payload.content, video=vid, owner=user["_id"]).to_mongo()
    comment = create_document(database, COMMENT, doc)
    return api_response(comment, "Comment added successfully", 201)


@comment_router.patch("/comments/{comment_id}")
def update_comment(
    comment_id: str,
    payload: CommentRequest,
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
):
    cid = objid(comment_id, "comment")
    comment = find_or_404(database, COMMENT, cid, "Comment")
    ensure_owner(comment, user, "update this comment")

    updated = update_document(database, COMMENT, cid, {"$set": {"content": payload.content}})
    if not updated:
        raise NotFoundError("Comment not found")
    return api_response(updated, "Comment updated successfully")


@comment_router.delete("/comments/{comment_id}")
def delete_comment(comment_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    cid = objid(comment_id, "comment")
    comment = find_or_404(database, COMMENT, cid, "Comment")
    ensure_owner(comment, user, "delete this comment")

    if not database[COMMENT].delete_one({"_id": cid}).deleted_count:
        raise NotFoundError("Comment not found")
    database[LIKE].delete_many({"targetType": LikeTarget.COMMENT.value, "target": cid})
    return api_response({}, "Comment deleted successfully")


# -------------------- Likes --------------------
like_router = APIRouter(prefix="/api/v1/likes", tags=["likes"])


@like_router.get("/user/liked-videos")
def liked_videos(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
):
    videos = paginate(database[LIKE], liked_videos_pipeline(user["_id"]), page, limit)
    return api_response(videos, "Liked videos fetched successfully")


def toggle_like(database, target_type: LikeTarget, target: ObjectId, user: dict) -> bool:
    key = Like(target_type=target_type, target=target, liked_by=user["_id"]).to_mongo()
    liked = toggle_document(database, LIKE, key)
    logger.info(f"{target_type.value} {target} {'liked' if liked else 'unliked'} by {user['_id']}")
    return liked


@like_router.patch("/video/{video_id}")
def toggle_video_like(video_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    vid = objid(video_id, "video")
    find_visible_video(database, vid, user)
    liked = toggle_like(database, LikeTarget.VIDEO, vid, user)
    return api_response({"isLiked": liked}, "Video liked successfully" if liked else "Video unliked successfully")


@like_router.patch("/comment/{comment_id}")
def toggle_comment_like(comment_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    cid = objid(comment_id, "comment")
    find_or_404(database, COMMENT, cid, "Comment", {"_id": 1})
    liked = toggle_like(database, LikeTarget.COMMENT, cid, user)
    return api_response({"isLiked": liked}, "Comment liked successfully" if liked else "Comment unliked successfully")


# -------------------- Playlists --------------------
playlist_router = APIRouter(prefix="/api/v1/playlist", tags=["playlists"])


@playlist_router.post("")
def create_playlist(payload: PlaylistRequest, user: dict = Depends(get_current_user), database=Depends(get_db)):
    doc = Playlist(name=payload.name.strip(), description=payload.description.strip(), owner=user["_id"]).to_mongo()
    playlist = create_document(database, PLAYLIST, doc)
    logger.info(f"Playlist created: {playlist['_id']} by {user['_id']}")
    return api_response(playlist, "Playlist created successfully", 201)


@playlist_router.get("/user/playlists")
def user_playlists(user: dict = Depends(get_current_user), database=Depends(get_db)):
    playlists = list(database[PLAYLIST].aggregate(user_playlists_pipeline(user["_id"])))
    return api_response(playlists, "Playlists fetched successfully")


@playlist_router.get("/{playlist_id}")
def get_playlist(playlist_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    pid = objid(playlist_id, "playlist")
    playlist = aggregate_one(database[PLAYLIST], playlist_detail_pipeline(pid, principal_id(user)))
    if not playlist:
        raise NotFoundError("Playlist not found")
    return api_response(playlist, "Playlist fetched successfully")


@playlist_router.delete("/{playlist_id}")
def delete_playlist(playlist_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    pid = objid(playlist_id, "playlist")
    playlist = find_or_404(database, PLAYLIST, pid, "Playlist")
    ensure_owner(playlist, user, "delete this playlist")

    if not database[PLAYLIST].delete_one({"_id": pid}).deleted_count:
        raise NotFoundError("Playlist not found")
    return api_response({}, "Playlist deleted successfully")


@playlist_router.patch("/add-video/{playlist_id}/{video_id}")
def add_video_to_playlist(
    playlist_id: str,
    video_id: str,
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
):
    pid = objid(playlist_id, "playlist")
    vid = objid(video_id, "video")
    playlist = find_or_404(database, PLAYLIST, pid, "Playlist")
    find_visible_video(database, vid, user)
    ensure_owner(playlist, user, "edit this playlist")

    if vid in playlist.get("videos", []):
        raise BadRequestError("Video already exists in the playlist")

    updated = update_document(database, PLAYLIST, pid, {"$addToSet": {"videos": vid}})
    if not updated:
        raise NotFoundError("Playlist not found")
    return api_response(updated, "Video added to playlist successfully")


@playlist_router.patch("/remove-video/{playlist_id}/{video_id}")
def remove_video_from_playlist(
    playlist_id: str,
    video_id: str,
    user: dict = Depends(get_current_user),
    database=Depends(get_db),
):
    pid = objid(playlist_id, "playlist")
    vid = objid(video_id, "video")
    playlist = find_or_404(database, PLAYLIST, pid, "Playlist")
    find_or_404(database, VIDEO, vid, "Video", {"_id": 1})
    ensure_owner(playlist, user, "remove videos from this playlist")

    updated = update_document(database, PLAYLIST, pid, {"$pull": {"videos": vid}})
    if not updated:
        raise NotFoundError("Playlist not found")
    return api_response(updated, "Video removed from playlist successfully")


# -------------------- Subscriptions --------------------
subscription_router = APIRouter(prefix="/api/v1/subscriptions", tags=["subscriptions"])


@subscription_router.patch("/channel/{channel_id}")
def toggle_subscription(channel_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    cid = objid(channel_id, "channel")
    if cid == user["_id"]:
        raise BadRequestError("Cannot subscribe to yourself")
    find_or_404(database, USER, cid, "Channel", {"_id": 1})

    key = Subscription(subscriber=user["_id"], channel=cid).to_mongo()
    subscribed = toggle_document(database, SUBSCRIPTION, key)
    logger.info(f"{user['_id']} {'subscribed to' if subscribed else 'unsubscribed from'} {cid}")
    return api_response(
        {"subscribed": subscribed},
        "Subscribed successfully" if subscribed else "Unsubscribed successfully",
    )


@subscription_router.get("/channel/{channel_id}")
def channel_subscribers(channel_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    cid = objid(channel_id, "channel")
    find_or_404(database, USER, cid, "Channel", {"_id": 1})
    subscribers = list(database[SUBSCRIPTION].aggregate(channel_subscribers_pipeline(cid, principal_id(user))))
    return api_response(
        {"subscribers": subscribers, "subscriberCount": len(subscribers)},
        "Subscribers fetched successfully",
    )


@subscription_router.get("/user/{subscriber_id}")
def subscribed_channels(subscriber_id: str, user: dict = Depends(get_current_user), database=Depends(get_db)):
    sid = objid(subscriber_id, "subscriber")
    find_or_404(database, USER, sid, "User", {"_id": 1})
    channels = list(database[SUBSCRIPTION].aggregate(subscribed_channels_pipeline(sid)))
    return api_response(
        {"channels": channels, "subscriptionCount": len(channels)},
        "Subscribed channels fetched successfully",
    )


app.include_router(user_router)
app.include_router(video_router)
app.include_router(comment_router)
app.include_router(like_router)
app.include_router(playlist_router)
app.include_router(subscription_router)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
