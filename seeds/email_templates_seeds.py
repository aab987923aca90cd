# seeds/email_templates_seeds.py
from models import AdminSettings, EmailTemplate, SETTINGS_ROW_ID
from services.email_templates import DEFAULT_TEMPLATES
from sqlalchemy.orm import Session


def seed_email_templates(session: Session):
    existing = {t.template_key for t in session.query(EmailTemplate).all()}
    for key, row in DEFAULT_TEMPLATES.items():
        if key in existing:
            continue
        session.add(EmailTemplate(template_key=key, **row))
    session.commit()


def seed_admin_settings(session: Session):
    if session.get(AdminSettings, SETTINGS_ROW_ID) is None:
        session.add(AdminSettings(id=SETTINGS_ROW_ID, notification_emails=[]))
        session.commit()
