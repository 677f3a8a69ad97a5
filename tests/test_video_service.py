"""Tests for the video feed and engagement service."""

import pytest
from bson import ObjectId

from fakes import make_user
from vidtube.core.errors import Forbidden, Internal, InvalidArgument, NotFound, UpstreamFailure
from vidtube.models.engagement import Like, Subscription
from vidtube.services.pipelines import SORT_FIELDS
from vidtube.services.video import VideoService


@pytest.fixture
def service(store, assets) -> VideoService:
    return VideoService(store, assets)


async def publish(service: VideoService, owner: dict, title: str = "T", description: str = "D") -> dict:
    return await service.publish_video(owner["_id"], title, description, "/tmp/clip.mp4", "/tmp/thumb.png")


class TestPublishVideo:
    @pytest.mark.asyncio
    async def test_creates_published_record(self, service, store, assets, alice) -> None:
        video = await publish(service, alice)

        assert video["isPublished"] is True
        assert video["views"] == 0
        assert video["owner"] == alice["_id"]
        assert video["duration"] == 42.5
        assert video["videoFile"] == {"url": "https://res.cloudinary.test/asset-1", "public_id": "asset-1"}
        assert video["thumbnail"]["public_id"] == "asset-2"
        assert store.find_video(video["_id"]) is not None
        assert [path for path, _ in assets.uploaded] == ["/tmp/clip.mp4", "/tmp/thumb.png"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("title,description", [("", "D"), ("T", "   "), (None, "D")])
    async def test_blank_fields_rejected(self, service, assets, alice, title, description) -> None:
        with pytest.raises(InvalidArgument):
            await service.publish_video(alice["_id"], title, description, "/tmp/clip.mp4", "/tmp/thumb.png")
        assert assets.uploaded == []

    @pytest.mark.asyncio
    async def test_missing_files_rejected(self, service, alice) -> None:
        with pytest.raises(InvalidArgument):
            await service.publish_video(alice["_id"], "T", "D", None, "/tmp/thumb.png")
        with pytest.raises(InvalidArgument):
            await service.publish_video(alice["_id"], "T", "D", "/tmp/clip.mp4", None)

    @pytest.mark.asyncio
    async def test_failed_thumbnail_upload_discards_video_asset(self, service, store, assets, alice) -> None:
        assets.fail_paths.add("/tmp/thumb.png")

        with pytest.raises(UpstreamFailure):
            await publish(service, alice)

        assert assets.deleted == [("asset-1", "video")]
        assert store.collections["videos"] == []


class TestGetAllVideos:
    @pytest.mark.asyncio
    async def test_only_published_newest_first(self, service, alice) -> None:
        first = await publish(service, alice, title="first")
        second = await publish(service, alice, title="second")
        hidden = await publish(service, alice, title="hidden")
        service.toggle_publish_status(str(hidden["_id"]), alice["_id"])

        page = service.get_all_videos()

        assert [doc["_id"] for doc in page["docs"]] == [second["_id"], first["_id"]]
        assert page["totalDocs"] == 2
        assert page["docs"][0]["ownerDetails"]["username"] == "alice"
        assert "password" not in page["docs"][0]["ownerDetails"]

    @pytest.mark.asyncio
    async def test_sort_by_views_ascending(self, service, store, alice, bob) -> None:
        popular = await publish(service, alice, title="popular")
        quiet = await publish(service, alice, title="quiet")
        for _ in range(3):
            service.get_video_by_id(str(popular["_id"]), bob["_id"])

        page = service.get_all_videos(sort_by="views", sort_type="asc")

        assert [doc["_id"] for doc in page["docs"]] == [quiet["_id"], popular["_id"]]
        views = [doc["views"] for doc in page["docs"]]
        assert views == sorted(views)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sort_type", ["asc", "desc"])
    @pytest.mark.parametrize("sort_by", SORT_FIELDS)
    async def test_explicit_sort(self, service, store, alice, sort_by, sort_type) -> None:
        for i in range(3):
            await publish(service, alice, title=f"video {i}")
        # views and duration disagree with creation order and with each other
        for doc, rank in zip(store.collections["videos"], [2, 0, 1]):
            doc["views"] = rank * 10
            doc["duration"] = 100.0 - rank

        page = service.get_all_videos(sort_by=sort_by, sort_type=sort_type)

        expected = sorted(store.collections["videos"], key=lambda doc: doc[sort_by], reverse=sort_type == "desc")
        assert [doc["_id"] for doc in page["docs"]] == [doc["_id"] for doc in expected]

    @pytest.mark.asyncio
    async def test_owner_filter_and_pagination(self, service, store, alice, bob) -> None:
        for i in range(3):
            await publish(service, alice, title=f"alice {i}")
        await publish(service, bob, title="bob")

        page = service.get_all_videos(page=2, limit=2, user_id=str(alice["_id"]))

        assert page["totalDocs"] == 3
        assert page["totalPages"] == 2
        assert len(page["docs"]) == 1
        assert page["docs"][0]["owner"] == alice["_id"]

    @pytest.mark.asyncio
    async def test_text_query(self, service, alice) -> None:
        await publish(service, alice, title="Cooking pasta", description="dinner")
        await publish(service, alice, title="Cat video", description="funny cats")

        page = service.get_all_videos(query="pasta")

        assert [doc["title"] for doc in page["docs"]] == ["Cooking pasta"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"user_id": "not-an-id"},
            {"sort_by": "title", "sort_type": "asc"},
            {"sort_by": "views", "sort_type": "sideways"},
            {"page": 0},
            {"limit": -1},
        ],
    )
    def test_invalid_arguments(self, service, kwargs) -> None:
        with pytest.raises(InvalidArgument):
            service.get_all_videos(**kwargs)


class TestGetVideoById:
    @pytest.mark.asyncio
    async def test_each_fetch_counts_a_view_and_appends_history(self, service, store, alice, bob) -> None:
        video = await publish(service, alice)
        video_id = str(video["_id"])

        for n in range(1, 4):
            result = service.get_video_by_id(video_id, bob["_id"])
            assert result["video"]["views"] == n
            assert result["watchHistory"] == [video["_id"]] * n

        assert store.find_video(video_id)["views"] == 3

    @pytest.mark.asyncio
    async def test_engagement_fields(self, service, store, alice, bob) -> None:
        video = await publish(service, alice)
        carol = make_user(store, "carol")
        store.add_like(Like(video=video["_id"], likedBy=bob["_id"]))
        store.add_like(Like(video=video["_id"], likedBy=carol["_id"]))
        store.add_subscription(Subscription(channel=alice["_id"], subscriber=bob["_id"]))

        as_bob = service.get_video_by_id(str(video["_id"]), bob["_id"])["video"]
        assert as_bob["likesCount"] == 2
        assert as_bob["isLiked"] is True
        assert as_bob["owner"]["username"] == "alice"
        assert as_bob["owner"]["subscribersCount"] == 1
        assert as_bob["owner"]["isSubscribed"] is True
        assert "likes" not in as_bob

        as_alice = service.get_video_by_id(str(video["_id"]), alice["_id"])["video"]
        assert as_alice["isLiked"] is False
        assert as_alice["owner"]["isSubscribed"] is False

    @pytest.mark.asyncio
    async def test_without_viewer(self, service, alice) -> None:
        video = await publish(service, alice)

        result = service.get_video_by_id(str(video["_id"]), None)

        assert result["video"]["isLiked"] is False
        assert result["video"]["owner"]["isSubscribed"] is False
        assert result["watchHistory"] == []

    def test_unknown_video_touches_nothing(self, service, store, bob) -> None:
        with pytest.raises(NotFound):
            service.get_video_by_id(str(ObjectId()), bob["_id"])

        assert store.find_user(bob["_id"])["watchHistory"] == []

    def test_invalid_id(self, service, bob) -> None:
        with pytest.raises(InvalidArgument):
            service.get_video_by_id("123", bob["_id"])


class TestUpdateVideo:
    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, service, alice) -> None:
        video = await publish(service, alice, title="old", description="desc")

        updated = await service.update_video(str(video["_id"]), alice["_id"], title="new")

        assert updated["title"] == "new"
        assert updated["description"] == "desc"
        assert updated["thumbnail"] == video["thumbnail"]

    @pytest.mark.asyncio
    async def test_new_thumbnail_replaces_old_after_write(self, service, assets, alice) -> None:
        video = await publish(service, alice)

        updated = await service.update_video(str(video["_id"]), alice["_id"], thumbnail_path="/tmp/new.png")

        assert updated["thumbnail"]["public_id"] == "asset-3"
        assert assets.deleted == [("asset-2", "image")]

    @pytest.mark.asyncio
    async def test_failed_write_discards_new_thumbnail(self, service, store, assets, alice) -> None:
        video = await publish(service, alice)
        store.fail_updates = True

        with pytest.raises(Internal):
            await service.update_video(str(video["_id"]), alice["_id"], thumbnail_path="/tmp/new.png")

        assert assets.deleted == [("asset-3", "image")]
        assert store.find_video(video["_id"])["thumbnail"]["public_id"] == "asset-2"

    @pytest.mark.asyncio
    async def test_no_fields(self, service, store, alice) -> None:
        video = await publish(service, alice)

        with pytest.raises(InvalidArgument):
            await service.update_video(str(video["_id"]), alice["_id"], title="  ")

        assert store.find_video(video["_id"])["title"] == "T"

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, service, store, assets, alice, bob) -> None:
        video = await publish(service, alice)

        with pytest.raises(Forbidden):
            await service.update_video(str(video["_id"]), bob["_id"], title="hijacked", thumbnail_path="/tmp/x.png")

        assert store.find_video(video["_id"])["title"] == "T"
        assert len(assets.uploaded) == 2

    @pytest.mark.asyncio
    async def test_unknown_video(self, service, alice) -> None:
        with pytest.raises(NotFound):
            await service.update_video(str(ObjectId()), alice["_id"], title="x")


class TestDeleteVideo:
    @pytest.mark.asyncio
    async def test_cascades_to_histories_and_assets(self, service, store, assets, alice, bob) -> None:
        video = await publish(service, alice)
        other = await publish(service, alice, title="other")
        service.get_video_by_id(str(video["_id"]), bob["_id"])
        service.get_video_by_id(str(other["_id"]), bob["_id"])
        service.get_video_by_id(str(video["_id"]), alice["_id"])

        deleted = await service.delete_video(str(video["_id"]), alice["_id"])

        assert deleted["_id"] == video["_id"]
        assert store.find_video(video["_id"]) is None
        assert store.find_user(bob["_id"])["watchHistory"] == [other["_id"]]
        assert store.find_user(alice["_id"])["watchHistory"] == []
        assert assets.deleted == [("asset-1", "video"), ("asset-2", "image")]
        with pytest.raises(NotFound):
            service.get_video_by_id(str(video["_id"]), bob["_id"])

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, service, store, alice, bob) -> None:
        video = await publish(service, alice)

        with pytest.raises(Forbidden):
            await service.delete_video(str(video["_id"]), bob["_id"])

        assert store.find_video(video["_id"]) is not None

    @pytest.mark.asyncio
    async def test_asset_failure_reported_after_record_removed(self, service, store, assets, alice) -> None:
        video = await publish(service, alice)
        assets.fail_deletes = True

        with pytest.raises(UpstreamFailure):
            await service.delete_video(str(video["_id"]), alice["_id"])

        assert store.find_video(video["_id"]) is None


class TestTogglePublishStatus:
    @pytest.mark.asyncio
    async def test_toggle_twice_restores(self, service, alice) -> None:
        video = await publish(service, alice)
        video_id = str(video["_id"])

        assert service.toggle_publish_status(video_id, alice["_id"]) == {"isPublished": False}
        assert service.toggle_publish_status(video_id, alice["_id"]) == {"isPublished": True}

    @pytest.mark.asyncio
    async def test_non_owner_forbidden(self, service, store, alice, bob) -> None:
        video = await publish(service, alice)

        with pytest.raises(Forbidden):
            service.toggle_publish_status(str(video["_id"]), bob["_id"])

        assert store.find_video(video["_id"])["isPublished"] is True

    def test_unknown_video(self, service, alice) -> None:
        with pytest.raises(NotFound):
            service.toggle_publish_status(str(ObjectId()), alice["_id"])
