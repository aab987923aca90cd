import uuid

from models import ApprovalStatus, PrayerStatus
from routes.prayers import list_prayers, prayer_item


class TestPublicPrayers:
    def test_lists_only_approved_prayers_without_emails(self, call, make_prayer, make_update):
        shown = make_prayer(is_anonymous=True)
        make_update(shown.id, content="Visible")
        make_update(shown.id, content="Hidden", approval_status=ApprovalStatus.PENDING)
        make_prayer(title="Waiting", approval_status=ApprovalStatus.PENDING)

        status, body = call(list_prayers, "GET", "prayers")

        assert status == 200
        assert [p["id"] for p in body] == [str(shown.id)]
        prayer = body[0]
        assert prayer["requester"] == "Anonymous"
        assert "email" not in prayer
        assert [u["content"] for u in prayer["updates"]] == ["Visible"]

    def test_filter_by_status(self, call, make_prayer):
        make_prayer(status=PrayerStatus.CURRENT)
        answered = make_prayer(status=PrayerStatus.ANSWERED)

        status, body = call(list_prayers, "GET", "prayers", params={"status": "answered"})
        assert status == 200
        assert [p["id"] for p in body] == [str(answered.id)]

        assert call(list_prayers, "GET", "prayers", params={"status": "lost"})[0] == 400

    def test_single_prayer(self, call, make_prayer):
        prayer = make_prayer()
        hidden = make_prayer(approval_status=ApprovalStatus.DENIED)

        status, body = call(prayer_item, "GET", route_params={"prayer_id": str(prayer.id)})
        assert status == 200
        assert body["requester"] == "John Doe"

        assert call(prayer_item, "GET", route_params={"prayer_id": str(hidden.id)})[0] == 404
        assert call(prayer_item, "GET", route_params={"prayer_id": str(uuid.uuid4())})[0] == 404
        assert call(prayer_item, "GET", route_params={"prayer_id": "nope"})[0] == 400
