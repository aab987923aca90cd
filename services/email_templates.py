import os
import re
import html
from typing import Dict, List, Optional, Tuple

from db import SessionLocal
from models import EmailTemplate
from utils.clock import utcnow

APP_NAME = os.getenv("APP_NAME", "Prayer App")
APP_URL = os.getenv("APP_URL", "http://localhost:5173").rstrip("/")

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")


def apply_template_variables(content: str, variables: Dict[str, str], escape: bool = False) -> str:
    """Replace {{name}} placeholders; unknown names become empty strings."""
    def _sub(match):
        value = variables.get(match.group(1))
        value = "" if value is None else str(value)
        return html.escape(value) if escape else value
    return _PLACEHOLDER.sub(_sub, content or "")


def _layout(heading: str, inner: str) -> str:
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="margin: 0; padding: 0; background-color: #f3f4f6; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;">
    <table role="presentation" width="100%" cellspacing="0" cellpadding="0">
        <tr>
            <td align="center" style="padding: 32px 16px;">
                <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width: 600px; background-color: #ffffff; border-radius: 12px; overflow: hidden;">
                    <tr>
                        <td style="padding: 28px 32px; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: #ffffff;">
                            <h1 style="margin: 0; font-size: 22px;">{heading}</h1>
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 28px 32px; color: #374151; font-size: 15px; line-height: 1.6;">
                            {inner}
                        </td>
                    </tr>
                    <tr>
                        <td style="padding: 16px 32px; background-color: #f9fafb; color: #9ca3af; font-size: 12px; text-align: center;">
                            {{{{app_name}}}}
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>
"""


DEFAULT_TEMPLATES: Dict[str, Dict[str, str]] = {
    "verification_code": dict(
        name="Verification code",
        description="Code emailed before a submission is accepted",
        subject="Your verification code: {{code}}",
        html_body=_layout("Email Verification", """
<p>You requested to <strong>{{action_description}}</strong>.</p>
<p>Use this code to complete your request:</p>
<p style="font-size: 32px; font-weight: 700; letter-spacing: 8px; text-align: center; font-family: 'Courier New', monospace;">{{code}}</p>
<p style="color: #6b7280;">This code expires in {{expiry_minutes}} minutes. If you didn't request it, you can ignore this email.</p>
"""),
        text_body=(
            "You requested to {{action_description}}.\n\n"
            "Your verification code is: {{code}}\n"
            "It expires in {{expiry_minutes}} minutes.\n\n"
            "If you didn't request this, you can safely ignore this email."
        ),
    ),
    "admin_new_request": dict(
        name="Admin: new request",
        description="Sent to admins when a request is waiting for review",
        subject="New {{action_label}} awaiting review",
        html_body=_layout("New request awaiting review", """
<p><strong>{{submitter_name}}</strong> ({{submitter_email}}) submitted a {{action_label}}.</p>
<p style="background: #f9fafb; padding: 12px; border-left: 4px solid #667eea;">{{summary}}</p>
<p><a href="{{admin_link}}">Review it in the admin portal</a></p>
"""),
        text_body=(
            "{{submitter_name}} ({{submitter_email}}) submitted a {{action_label}}.\n\n"
            "{{summary}}\n\nReview: {{admin_link}}"
        ),
    ),
    "request_approved": dict(
        name="Request approved",
        description="Sent to the submitter when an admin approves their request",
        subject="Your {{action_label}} was approved",
        html_body=_layout("Request approved", """
<p>Hi {{name}},</p>
<p>Your {{action_label}} has been approved.</p>
<p style="background: #f0fdf4; padding: 12px; border-left: 4px solid #22c55e;">{{summary}}</p>
<p><a href="{{app_link}}">Open the prayer list</a></p>
"""),
        text_body=(
            "Hi {{name}},\n\nYour {{action_label}} has been approved.\n\n{{summary}}\n\n{{app_link}}"
        ),
    ),
    "request_denied": dict(
        name="Request denied",
        description="Sent to the submitter when an admin denies their request",
        subject="Your {{action_label}} was not approved",
        html_body=_layout("Request not approved", """
<p>Hi {{name}},</p>
<p>Your {{action_label}} was not approved.</p>
<p style="background: #f9fafb; padding: 12px;">{{summary}}</p>
<p style="background: #fef2f2; padding: 12px; border-left: 4px solid #ef4444;"><strong>Reason:</strong> {{denial_reason}}</p>
"""),
        text_body=(
            "Hi {{name}},\n\nYour {{action_label}} was not approved.\n\n{{summary}}\n\n"
            "Reason: {{denial_reason}}"
        ),
    ),
    "new_prayer_broadcast": dict(
        name="New prayer",
        description="Sent to subscribers when a prayer request is approved",
        subject="New Prayer Request: {{title}}",
        html_body=_layout("New Prayer Request", """
<h2 style="margin-top: 0;">{{title}}</h2>
<p><strong>For:</strong> {{prayer_for}}<br><strong>Requested by:</strong> {{requester}}</p>
<p>{{description}}</p>
<p><a href="{{app_link}}">View all prayers</a></p>
"""),
        text_body=(
            "A new prayer request has been approved.\n\nTitle: {{title}}\nFor: {{prayer_for}}\n"
            "Requested by: {{requester}}\n\n{{description}}\n\n{{app_link}}"
        ),
    ),
    "prayer_update_broadcast": dict(
        name="Prayer update",
        description="Sent to subscribers when a prayer update is approved",
        subject="Prayer Update: {{title}}",
        html_body=_layout("Prayer Update", """
<h2 style="margin-top: 0;">{{title}}</h2>
<p><strong>Update from {{author}}:</strong></p>
<p>{{content}}</p>
<p><a href="{{app_link}}">View all prayers</a></p>
"""),
        text_body="Update on '{{title}}' from {{author}}:\n\n{{content}}\n\n{{app_link}}",
    ),
    "prayer_reminder": dict(
        name="Prayer reminder",
        description="Sent to a prayer's owner when it has had no recent updates",
        subject="Reminder: Update your prayer request",
        html_body=_layout("Time to share an update?", """
<p>Hi {{requester_name}},</p>
<p>Your prayer request <strong>{{title}}</strong> (for {{prayer_for}}) hasn't had an update in a while.</p>
<p>Sharing how things are going lets others keep praying, and lets the church celebrate answered prayers.</p>
<p><a href="{{app_link}}">Add an update</a></p>
"""),
        text_body=(
            "Hi {{requester_name}},\n\nYour prayer request '{{title}}' (for {{prayer_for}}) "
            "hasn't had an update in a while. Add one here: {{app_link}}"
        ),
    ),
}


def _load_override(template_key: str) -> Optional[EmailTemplate]:
    with SessionLocal() as db:
        return db.query(EmailTemplate).filter(EmailTemplate.template_key == template_key).first()


def render_template(template_key: str, variables: Dict[str, str]) -> Tuple[str, str, str]:
    """Return (subject, html_body, text_body) for a template key."""
    default = DEFAULT_TEMPLATES.get(template_key)
    override = _load_override(template_key)
    if override is None and default is None:
        raise KeyError(f"Unknown email template: {template_key}")

    if override is not None:
        subject, html_body, text_body = override.subject, override.html_body, override.text_body
    else:
        subject, html_body, text_body = default["subject"], default["html_body"], default["text_body"]

    values = {"app_name": APP_NAME, "app_link": f"{APP_URL}/", "year": str(utcnow().year)}
    values.update({k: v for k, v in variables.items() if v is not None})

    return (
        apply_template_variables(subject, values),
        apply_template_variables(html_body, values, escape=True),
        apply_template_variables(text_body, values),
    )


def list_templates() -> List[Dict[str, str]]:
    with SessionLocal() as db:
        overrides = {t.template_key: t for t in db.query(EmailTemplate).all()}

    out = []
    for key, default in DEFAULT_TEMPLATES.items():
        row = overrides.get(key)
        out.append({
            "template_key": key,
            "name": row.name if row else default["name"],
            "description": row.description if row else default["description"],
            "subject": row.subject if row else default["subject"],
            "html_body": row.html_body if row else default["html_body"],
            "text_body": row.text_body if row else default["text_body"],
            "customized": row is not None and (row.subject, row.html_body, row.text_body) != (
                default["subject"], default["html_body"], default["text_body"]
            ),
        })
    return out


def save_template(template_key: str, subject: str, html_body: str, text_body: str) -> EmailTemplate:
    if template_key not in DEFAULT_TEMPLATES:
        raise ValueError(f"Unknown email template: {template_key}")
    if not all([(subject or "").strip(), (html_body or "").strip(), (text_body or "").strip()]):
        raise ValueError("subject, html_body and text_body are required")

    default = DEFAULT_TEMPLATES[template_key]
    with SessionLocal() as db:
        row = db.query(EmailTemplate).filter(EmailTemplate.template_key == template_key).first()
        if row is None:
            row = EmailTemplate(
                template_key=template_key,
                name=default["name"],
                description=default["description"],
            )
            db.add(row)
        row.subject = subject
        row.html_body = html_body
        row.text_body = text_body
        db.commit()
        db.refresh(row)
        return row


def reset_template(template_key: str) -> bool:
    """Drop an override so the built-in template is used again."""
    with SessionLocal() as db:
        rows = (
            db.query(EmailTemplate)
            .filter(EmailTemplate.template_key == template_key)
            .delete(synchronize_session=False)
        )
        db.commit()
        return rows > 0
