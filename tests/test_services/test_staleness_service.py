from datetime import datetime, timedelta

import pytest

from db import SessionLocal
from models import ApprovalStatus, Prayer, PrayerStatus
from services.settings_service import AdminConfig
from services.staleness_service import (
    last_activity_at,
    run_scheduled_scans,
    scan_for_auto_archive,
    scan_for_auto_transition,
    scan_for_reminders,
)

NOW = datetime(2024, 6, 15, 9, 0, 0)


def _days_ago(days):
    return NOW - timedelta(days=days)


def _reload(prayer_id):
    with SessionLocal() as db:
        return db.get(Prayer, prayer_id)


class TestLastActivity:
    def test_without_updates_is_creation(self):
        assert last_activity_at(_days_ago(8), None) == _days_ago(8)

    def test_latest_of_creation_and_update(self):
        assert last_activity_at(_days_ago(8), _days_ago(1)) == _days_ago(1)


class TestReminders:
    def test_recent_update_means_not_due(self, make_prayer, make_update, dispatcher):
        prayer = make_prayer(created_at=_days_ago(8))
        make_update(prayer.id, created_at=_days_ago(1))

        assert scan_for_reminders(7, now=NOW) == []
        assert dispatcher.sent == []

    def test_no_updates_since_creation_is_due(self, make_prayer, dispatcher):
        prayer = make_prayer(created_at=_days_ago(8))

        due = scan_for_reminders(7, now=NOW)

        assert [p.id for p in due] == [prayer.id]
        [message] = dispatcher.to("john@example.org")
        assert message["subject"] == "Reminder: Update your prayer request"
        assert "Hi John Doe" in message["text"]
        assert _reload(prayer.id).last_reminder_sent == NOW

    def test_old_update_still_due(self, make_prayer, make_update):
        prayer = make_prayer(created_at=_days_ago(30))
        make_update(prayer.id, created_at=_days_ago(10))

        assert [p.id for p in scan_for_reminders(7, now=NOW)] == [prayer.id]

    @pytest.mark.parametrize("interval", [0, -3])
    def test_disabled_interval_returns_nothing(self, make_prayer, dispatcher, interval):
        make_prayer(created_at=_days_ago(400))

        assert scan_for_reminders(interval, now=NOW) == []
        assert dispatcher.sent == []

    def test_only_approved_current_or_ongoing_prayers(self, make_prayer):
        ongoing = make_prayer(created_at=_days_ago(20), status=PrayerStatus.ONGOING)
        make_prayer(created_at=_days_ago(20), status=PrayerStatus.ANSWERED)
        make_prayer(created_at=_days_ago(20), status=PrayerStatus.CLOSED)
        make_prayer(created_at=_days_ago(20), approval_status=ApprovalStatus.PENDING)

        assert [p.id for p in scan_for_reminders(7, now=NOW)] == [ongoing.id]

    def test_prayer_without_email_is_due_but_skipped(self, make_prayer, dispatcher):
        prayer = make_prayer(created_at=_days_ago(20), email=None)

        due = scan_for_reminders(7, now=NOW)

        assert [p.id for p in due] == [prayer.id]
        assert dispatcher.sent == []
        assert _reload(prayer.id).last_reminder_sent is None

    def test_anonymous_owner_is_greeted_generically(self, make_prayer, dispatcher):
        make_prayer(created_at=_days_ago(20), is_anonymous=True)

        scan_for_reminders(7, now=NOW)

        [message] = dispatcher.sent
        assert "Hi Friend" in message["text"]

    def test_repeat_scan_still_reports_due(self, make_prayer, dispatcher):
        prayer = make_prayer(created_at=_days_ago(10))

        first = scan_for_reminders(7, now=NOW)
        second = scan_for_reminders(7, now=NOW + timedelta(minutes=1))

        assert [p.id for p in first] == [prayer.id]
        assert [p.id for p in second] == [prayer.id]
        assert len(dispatcher.sent) == 2

    def test_failed_send_does_not_stamp_reminder(self, make_prayer, failing_dispatcher):
        prayer = make_prayer(created_at=_days_ago(10))

        due = scan_for_reminders(7, now=NOW)

        assert [p.id for p in due] == [prayer.id]
        assert _reload(prayer.id).last_reminder_sent is None


class TestAutoTransition:
    def test_old_current_prayers_become_ongoing(self, make_prayer):
        old = make_prayer(created_at=_days_ago(31))
        young = make_prayer(created_at=_days_ago(5))

        moved = scan_for_auto_transition(30, now=NOW)

        assert [p.id for p in moved] == [old.id]
        assert _reload(old.id).status == PrayerStatus.ONGOING
        assert _reload(young.id).status == PrayerStatus.CURRENT

    def test_uses_creation_date_even_with_recent_updates(self, make_prayer, make_update):
        prayer = make_prayer(created_at=_days_ago(31))
        make_update(prayer.id, created_at=_days_ago(1))

        assert [p.id for p in scan_for_auto_transition(30, now=NOW)] == [prayer.id]

    def test_ignores_other_statuses_and_unapproved(self, make_prayer):
        make_prayer(created_at=_days_ago(60), status=PrayerStatus.ANSWERED)
        make_prayer(created_at=_days_ago(60), approval_status=ApprovalStatus.DENIED)

        assert scan_for_auto_transition(30, now=NOW) == []

    def test_disabled_interval(self, make_prayer):
        prayer = make_prayer(created_at=_days_ago(400))

        assert scan_for_auto_transition(0, now=NOW) == []
        assert _reload(prayer.id).status == PrayerStatus.CURRENT

    def test_second_run_finds_nothing(self, make_prayer):
        make_prayer(created_at=_days_ago(40))

        assert len(scan_for_auto_transition(30, now=NOW)) == 1
        assert scan_for_auto_transition(30, now=NOW) == []


class TestAutoArchive:
    def test_closes_prayers_ignored_since_reminder(self, make_prayer):
        prayer = make_prayer(created_at=_days_ago(30), last_reminder_sent=_days_ago(8))

        archived = scan_for_auto_archive(7, now=NOW)

        assert [p.id for p in archived] == [prayer.id]
        assert _reload(prayer.id).status == PrayerStatus.CLOSED

    def test_update_after_reminder_keeps_prayer_open(self, make_prayer, make_update):
        prayer = make_prayer(created_at=_days_ago(30), last_reminder_sent=_days_ago(8))
        make_update(prayer.id, created_at=_days_ago(3))

        assert scan_for_auto_archive(7, now=NOW) == []
        assert _reload(prayer.id).status == PrayerStatus.CURRENT

    def test_recent_reminder_or_none_is_left_alone(self, make_prayer):
        make_prayer(created_at=_days_ago(30), last_reminder_sent=_days_ago(2))
        make_prayer(created_at=_days_ago(30))

        assert scan_for_auto_archive(7, now=NOW) == []


class TestScheduledRun:
    def test_runs_enabled_scans_with_given_config(self, make_prayer, dispatcher):
        stale = make_prayer(created_at=_days_ago(40))
        forgotten = make_prayer(
            created_at=_days_ago(90),
            status=PrayerStatus.ONGOING,
            last_reminder_sent=_days_ago(20),
        )
        config = AdminConfig(
            reminder_interval_days=7,
            auto_transition_days=30,
            enable_auto_archive=True,
            days_before_archive=14,
        )

        summary = run_scheduled_scans(config=config, now=NOW)

        assert summary == {
            "reminders_due": 2,
            "reminders_sent": 2,
            "transitioned": 1,
            "archived": 0,
        }
        assert _reload(stale.id).status == PrayerStatus.ONGOING
        assert _reload(forgotten.id).status == PrayerStatus.ONGOING
        assert len(dispatcher.sent) == 2

    def test_archive_is_skipped_when_disabled(self, make_prayer):
        prayer = make_prayer(created_at=_days_ago(90), last_reminder_sent=_days_ago(30))

        summary = run_scheduled_scans(config=AdminConfig(), now=NOW)

        assert summary == {"reminders_due": 0, "reminders_sent": 0, "transitioned": 0, "archived": 0}
        assert _reload(prayer.id).status == PrayerStatus.CURRENT
