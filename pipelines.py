"""
Aggregation pipelines that build the read models served by the API.

Every builder returns a plain list of stages for `collection.aggregate`.
Nothing here touches the database. The acting principal is passed in
explicitly as an ObjectId, or None for anonymous requests, in which case
every per-viewer flag (isLiked, isSubscribed) is a literal false.

Joins use the concise $lookup form (localField/foreignField plus a
sub-pipeline), which needs MongoDB 5.0 or newer.
"""

import re
from typing import List, Optional

from bson import ObjectId

from database import COMMENT, LIKE, SUBSCRIPTION, USER, VIDEO
from responses import BadRequestError
from schemas import LikeTarget

SORTABLE_VIDEO_FIELDS = ("createdAt", "updatedAt", "views", "duration", "title")

# Public shape of a user when embedded in another document
OWNER_CARD = {"username": 1, "fullName": 1, "avatar.url": 1}

VIDEO_CARD = {
    "title": 1,
    "description": 1,
    "videoFile.url": 1,
    "thumbnail.url": 1,
    "duration": 1,
    "views": 1,
    "createdAt": 1,
    "owner": 1,
}

VIDEO_SUMMARY = {"title": 1, "description": 1, "videoFile.url": 1, "thumbnail.url": 1}


# -------------------- Building blocks --------------------

def membership_flag(principal_id: Optional[ObjectId], path: str) -> dict:
    """True when the principal's id is in the array at `path`."""
    if principal_id is None:
        return {"$literal": False}
    return {"$in": [principal_id, path]}


def likes_lookup(target_type: LikeTarget, as_field: str = "likes") -> dict:
    """Join the likes whose tagged target is the current document."""
    return {
        "$lookup": {
            "from": LIKE,
            "localField": "_id",
            "foreignField": "target",
            "as": as_field,
            "pipeline": [
                {"$match": {"targetType": LikeTarget(target_type).value}},
                {"$project": {"likedBy": 1}},
            ],
        }
    }


def subscribers_join(principal_id: Optional[ObjectId], count_field: str = "subscriberCount") -> List[dict]:
    """On a user document: count its subscribers and flag the principal among them."""
    return [
        {
            "$lookup": {
                "from": SUBSCRIPTION,
                "localField": "_id",
                "foreignField": "channel",
                "as": "subscribers",
                "pipeline": [{"$project": {"subscriber": 1}}],
            }
        },
        {
            "$addFields": {
                count_field: {"$size": "$subscribers"},
                "isSubscribed": membership_flag(principal_id, "$subscribers.subscriber"),
            }
        },
    ]


def visible_videos(principal_id: Optional[ObjectId]) -> dict:
    """On a video document: keep it if published, or if the principal owns it."""
    if principal_id is None:
        return {"$match": {"isPublished": True}}
    return {"$match": {"$or": [{"isPublished": True}, {"owner": principal_id}]}}


def owner_join(fields: Optional[dict] = None) -> List[dict]:
    """Replace the `owner` id with the owner's public card (inner join)."""
    return [
        {
            "$lookup": {
                "from": USER,
                "localField": "owner",
                "foreignField": "_id",
                "as": "owner",
                "pipeline": [{"$project": fields or OWNER_CARD}],
            }
        },
        {"$unwind": "$owner"},
    ]


def in_id_order(ids_path: str, docs_path: str) -> dict:
    """
    Reorder joined documents to follow an array of ids.

    $lookup does not keep the order of an array localField, so map every id
    to its joined document and drop ids whose document no longer exists.
    """
    return {
        "$filter": {
            "input": {
                "$map": {
                    "input": {"$ifNull": [ids_path, []]},
                    "as": "id",
                    "in": {
                        "$first": {
                            "$filter": {
                                "input": docs_path,
                                "as": "doc",
                                "cond": {"$eq": ["$$doc._id", "$$id"]},
                            }
                        }
                    },
                }
            },
            "as": "doc",
            "cond": {"$eq": [{"$type": "$$doc"}, "object"]},
        }
    }


# -------------------- Videos --------------------

def video_detail_pipeline(video_id: ObjectId, principal_id: Optional[ObjectId] = None) -> List[dict]:
    return [
        {"$match": {"_id": video_id}},
        likes_lookup(LikeTarget.VIDEO),
        {
            "$lookup": {
                "from": COMMENT,
                "localField": "_id",
                "foreignField": "video",
                "as": "comments",
                "pipeline": [{"$project": {"_id": 1}}],
            }
        },
        {
            "$lookup": {
                "from": USER,
                "localField": "owner",
                "foreignField": "_id",
                "as": "owner",
                "pipeline": [
                    *subscribers_join(principal_id),
                    {"$project": {"username": 1, "avatar.url": 1, "subscriberCount": 1, "isSubscribed": 1}},
                ],
            }
        },
        {
            "$addFields": {
                "likeCount": {"$size": "$likes"},
                "commentCount": {"$size": "$comments"},
                "owner": {"$first": "$owner"},
                "isLiked": membership_flag(principal_id, "$likes.likedBy"),
            }
        },
        {
            "$project": {
                "title": 1,
                "description": 1,
                "videoFile.url": 1,
                "thumbnail.url": 1,
                "duration": 1,
                "views": 1,
                "isPublished": 1,
                "createdAt": 1,
                "updatedAt": 1,
                "owner": 1,
                "likeCount": 1,
                "commentCount": 1,
                "isLiked": 1,
            }
        },
    ]


def video_list_pipeline(
    owner_id: Optional[ObjectId] = None,
    query: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_type: Optional[str] = None,
) -> List[dict]:
    """Published videos only, whatever the owner filter."""
    sort_by = sort_by or "createdAt"
    sort_type = (sort_type or "desc").lower()
    if sort_by not in SORTABLE_VIDEO_FIELDS:
        raise BadRequestError(f"sortBy must be one of: {', '.join(SORTABLE_VIDEO_FIELDS)}")
    if sort_type not in ("asc", "desc"):
        raise BadRequestError("sortType must be 'asc' or 'desc'")
    direction = 1 if sort_type == "asc" else -1

    pipeline: List[dict] = []
    if owner_id is not None:
        pipeline.append({"$match": {"owner": owner_id}})
    pipeline.append(visible_videos(None))

    if query and query.strip():
        pattern = {"$regex": re.escape(query.strip()), "$options": "i"}
        pipeline.append({"$match": {"$or": [{"title": pattern}, {"description": pattern}]}})

    pipeline.append({"$sort": {sort_by: direction, "_id": direction}})
    pipeline.extend(owner_join({"username": 1, "avatar.url": 1}))
    pipeline.append({"$project": {"videoFile.public_id": 0, "thumbnail.public_id": 0}})
    return pipeline


# -------------------- Comments & likes --------------------

def comment_list_pipeline(video_id: ObjectId, principal_id: Optional[ObjectId] = None) -> List[dict]:
    return [
        {"$match": {"video": video_id}},
        {"$sort": {"createdAt": -1, "_id": -1}},
        {
            "$lookup": {
                "from": USER,
                "localField": "owner",
                "foreignField": "_id",
                "as": "owner",
                "pipeline": [{"$project": OWNER_CARD}],
            }
        },
        likes_lookup(LikeTarget.COMMENT),
        {
            "$addFields": {
                "likeCount": {"$size": "$likes"},
                "owner": {"$first": "$owner"},
                "isLiked": membership_flag(principal_id, "$likes.likedBy"),
            }
        },
        {
            "$project": {
                "content": 1,
                "createdAt": 1,
                "updatedAt": 1,
                "likeCount": 1,
                "owner": 1,
                "isLiked": 1,
            }
        },
    ]


def liked_videos_pipeline(user_id: ObjectId) -> List[dict]:
    return [
        {"$match": {"likedBy": user_id, "targetType": LikeTarget.VIDEO.value}},
        {"$sort": {"createdAt": -1, "_id": -1}},
        {
            "$lookup": {
                "from": VIDEO,
                "localField": "target",
                "foreignField": "_id",
                "as": "video",
                "pipeline": [visible_videos(user_id), *owner_join(), {"$project": VIDEO_CARD}],
            }
        },
        {"$unwind": "$video"},
        {"$project": {"_id": 0, "likedAt": "$createdAt", "video": 1}},
    ]


# -------------------- Subscriptions --------------------

def channel_subscribers_pipeline(channel_id: ObjectId, principal_id: Optional[ObjectId] = None) -> List[dict]:
    """Subscribers of a channel; isSubscribed tells whether the principal follows each of them."""
    return [
        {"$match": {"channel": channel_id}},
        {"$sort": {"createdAt": -1, "_id": -1}},
        {
            "$lookup": {
                "from": USER,
                "localField": "subscriber",
                "foreignField": "_id",
                "as": "subscriber",
                "pipeline": [
                    *subscribers_join(principal_id),
                    {"$project": {**OWNER_CARD, "subscriberCount": 1, "isSubscribed": 1}},
                ],
            }
        },
        {"$unwind": "$subscriber"},
        {"$project": {"_id": 0, "subscriber": 1, "subscribedAt": "$createdAt"}},
    ]


def subscribed_channels_pipeline(subscriber_id: ObjectId) -> List[dict]:
    return [
        {"$match": {"subscriber": subscriber_id}},
        {"$sort": {"createdAt": -1, "_id": -1}},
        {
            "$lookup": {
                "from": USER,
                "localField": "channel",
                "foreignField": "_id",
                "as": "channel",
                "pipeline": [
                    {
                        "$lookup": {
                            "from": SUBSCRIPTION,
                            "localField": "_id",
                            "foreignField": "channel",
                            "as": "subscribers",
                            "pipeline": [{"$project": {"_id": 1}}],
                        }
                    },
                    {"$addFields": {"subscriberCount": {"$size": "$subscribers"}}},
                    {"$project": {**OWNER_CARD, "subscriberCount": 1}},
                ],
            }
        },
        {"$unwind": "$channel"},
        {"$project": {"_id": 0, "channel": 1, "subscribedAt": "$createdAt"}},
    ]


# -------------------- Playlists & history --------------------

def playlist_detail_pipeline(playlist_id: ObjectId, principal_id: Optional[ObjectId] = None) -> List[dict]:
    """Unpublished videos only show up for their owner."""
    return [
        {"$match": {"_id": playlist_id}},
        {
            "$lookup": {
                "from": VIDEO,
                "localField": "videos",
                "foreignField": "_id",
                "as": "videoDocs",
                "pipeline": [
                    visible_videos(principal_id),
                    *owner_join(),
                    {"$project": {**VIDEO_CARD, "updatedAt": 1}},
                ],
            }
        },
        {
            "$lookup": {
                "from": USER,
                "localField": "owner",
                "foreignField": "_id",
                "as": "owner",
                "pipeline": [{"$project": OWNER_CARD}],
            }
        },
        {
            "$addFields": {
                "videos": in_id_order("$videos", "$videoDocs"),
                "owner": {"$first": "$owner"},
            }
        },
        {
            "$addFields": {
                "totalVideos": {"$size": "$videos"},
                "totalViews": {"$sum": "$videos.views"},
            }
        },
        {
            "$project": {
                "name": 1,
                "description": 1,
                "owner": 1,
                "videos": 1,
                "totalVideos": 1,
                "totalViews": 1,
                "createdAt": 1,
                "updatedAt": 1,
            }
        },
    ]


def user_playlists_pipeline(owner_id: ObjectId) -> List[dict]:
    return [
        {"$match": {"owner": owner_id}},
        {"$sort": {"createdAt": -1, "_id": -1}},
        {
            "$lookup": {
                "from": VIDEO,
                "localField": "videos",
                "foreignField": "_id",
                "as": "videoDocs",
                "pipeline": [visible_videos(owner_id), {"$project": VIDEO_SUMMARY}],
            }
        },
        {"$addFields": {"videos": in_id_order("$videos", "$videoDocs")}},
        {"$addFields": {"totalVideos": {"$size": "$videos"}}},
        {
            "$project": {
                "name": 1,
                "description": 1,
                "videos": 1,
                "totalVideos": 1,
                "createdAt": 1,
                "updatedAt": 1,
            }
        },
    ]


def watch_history_pipeline(user_id: ObjectId) -> List[dict]:
    return [
        {"$match": {"_id": user_id}},
        {
            "$lookup": {
                "from": VIDEO,
                "localField": "watchHistory",
                "foreignField": "_id",
                "as": "historyDocs",
                "pipeline": [visible_videos(user_id), *owner_join(), {"$project": VIDEO_CARD}],
            }
        },
        {"$project": {"_id": 0, "watchHistory": in_id_order("$watchHistory", "$historyDocs")}},
    ]
