import os
import logging
import azure.functions as func
from services.email_service import deliver_queued_emails
from services.staleness_service import run_scheduled_scans
from services.verification_service import purge_expired_codes

logger = logging.getLogger(__name__)
bp = func.Blueprint()

# NCRONTAB, six fields (seconds first), evaluated in UTC unless WEBSITE_TIME_ZONE is set
DAILY_SCAN_SCHEDULE = os.getenv("DAILY_SCAN_SCHEDULE", "0 0 9 * * *")
CODE_CLEANUP_SCHEDULE = os.getenv("CODE_CLEANUP_SCHEDULE", "0 15 * * * *")
# One outbox run per minute sends at most EMAIL_BATCH_SIZE messages
EMAIL_OUTBOX_SCHEDULE = os.getenv("EMAIL_OUTBOX_SCHEDULE", "0 * * * * *")


@bp.function_name(name="DailyPrayerScan")
@bp.timer_trigger(schedule=DAILY_SCAN_SCHEDULE, arg_name="timer",
                  run_on_startup=False, use_monitor=True)
def daily_prayer_scan(timer: func.TimerRequest) -> None:
    if timer.past_due:
        logger.warning("Daily prayer scan is running late")
    try:
        summary = run_scheduled_scans()
        logger.info(f"Daily prayer scan finished: {summary}")
    except Exception:
        logger.exception("Daily prayer scan failed")
        raise


@bp.function_name(name="PurgeExpiredCodes")
@bp.timer_trigger(schedule=CODE_CLEANUP_SCHEDULE, arg_name="timer",
                  run_on_startup=False, use_monitor=False)
def purge_codes(timer: func.TimerRequest) -> None:
    removed = purge_expired_codes()
    logger.info(f"Expired verification code cleanup removed {removed} rows")


@bp.function_name(name="DeliverQueuedEmails")
@bp.timer_trigger(schedule=EMAIL_OUTBOX_SCHEDULE, arg_name="timer",
                  run_on_startup=False, use_monitor=False)
def deliver_outbox(timer: func.TimerRequest) -> None:
    result = deliver_queued_emails()
    if result.failed:
        logger.warning(f"Outbox run had {result.failed} failed sends: {result.errors[:5]}")
