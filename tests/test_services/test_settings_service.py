import pytest

from db import SessionLocal
from models import AdminSettings, SETTINGS_ROW_ID
from services.errors import InvalidSettings
from services.settings_service import AdminConfig, get_admin_config, update_admin_config


class TestAdminConfig:
    def test_defaults_when_no_row(self):
        config = get_admin_config()

        assert config == AdminConfig()
        assert config.require_email_verification is False
        assert config.verification_code_length == 6
        assert config.verification_code_expiry_minutes == 15
        assert config.reminder_interval_days == 0
        assert config.auto_transition_days == 0

    def test_update_persists_and_is_read_fresh(self):
        update_admin_config({"require_email_verification": True, "reminder_interval_days": 7})
        assert get_admin_config().require_email_verification is True

        update_admin_config({"require_email_verification": False})
        config = get_admin_config()
        assert config.require_email_verification is False
        assert config.reminder_interval_days == 7

        with SessionLocal() as db:
            assert db.query(AdminSettings).count() == 1
            assert db.get(AdminSettings, SETTINGS_ROW_ID).reminder_interval_days == 7

    def test_notification_emails_are_normalized(self):
        config = update_admin_config({"notification_emails": [" Pastor@Church.org "]})
        assert config.notification_emails == ["pastor@church.org"]

    @pytest.mark.parametrize("changes", [
        {"verification_code_length": 3},
        {"verification_code_length": 9},
        {"verification_code_expiry_minutes": 4},
        {"verification_code_expiry_minutes": 61},
        {"reminder_interval_days": -1},
        {"reminder_interval_days": 91},
        {"auto_transition_days": 366},
        {"days_before_archive": 0},
        {"require_email_verification": "yes"},
        {"verification_code_length": True},
        {"notification_emails": ["not-an-email"]},
        {"notification_emails": "admin@church.org"},
        {"favourite_colour": "blue"},
        {},
    ])
    def test_rejects_invalid_changes(self, changes):
        with pytest.raises(InvalidSettings):
            update_admin_config(changes)
        assert get_admin_config() == AdminConfig()

    @pytest.mark.parametrize("field, value", [
        ("verification_code_length", 4),
        ("verification_code_length", 8),
        ("verification_code_expiry_minutes", 5),
        ("verification_code_expiry_minutes", 60),
        ("reminder_interval_days", 90),
        ("auto_transition_days", 365),
    ])
    def test_accepts_range_bounds(self, field, value):
        assert getattr(update_admin_config({field: value}), field) == value
