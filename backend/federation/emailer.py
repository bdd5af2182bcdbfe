# federation/emailer.py

import os
import smtplib
import socket
from email.message import EmailMessage


def _truthy(value: str) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "on")


def email_enabled() -> bool:
    return _truthy(os.getenv("EMAIL_ENABLED", "false"))


def send_email_if_configured(to_email: str, subject: str, body: str) -> bool:
    """
    Sends email only if SMTP is configured.
    NEVER raises. Returns True if sent, False if skipped/failed.
    """
    if not email_enabled():
        return False

    host = (os.getenv("SMTP_HOST") or "").strip()
    username = (os.getenv("SMTP_USERNAME") or "").strip()
    password = (os.getenv("SMTP_PASSWORD") or "").strip()
    from_name = (os.getenv("SMTP_FROM_NAME") or "Volleyball Federation").strip()
    from_email = (os.getenv("SMTP_FROM_EMAIL") or username).strip()

    if not host or not username or not password or not from_email:
        print("EMAIL SKIPPED: Missing SMTP_* env vars (host/username/password/from).")
        return False

    try:
        port = int((os.getenv("SMTP_PORT") or "587").strip())
    except ValueError:
        port = 587

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = f"{from_name} <{from_email}>"
    msg["To"] = to_email
    msg.set_content(body)

    try:
        with smtplib.SMTP(host, port, timeout=15) as server:
            server.ehlo()
            server.starttls()
            server.login(username, password)
            server.send_message(msg)
    except socket.gaierror as e:
        print(f"EMAIL FAILED: DNS/host lookup failed for SMTP_HOST='{host}'. Error: {e}")
        return False
    except (smtplib.SMTPException, OSError) as e:
        print(f"EMAIL FAILED: {e}")
        return False

    print(f"EMAIL SENT to {to_email}")
    return True


def notify_admin(subject: str, body: str) -> bool:
    """Send to ADMIN_NOTIFY_EMAIL (falls back to SMTP_FROM_EMAIL). False if neither is set."""
    admin_to = (os.getenv("ADMIN_NOTIFY_EMAIL") or os.getenv("SMTP_FROM_EMAIL") or "").strip()
    if not admin_to:
        return False

    ok = send_email_if_configured(admin_to, subject, body)
    if not ok:
        print("EMAIL ADMIN NOTIFY NOT SENT (disabled/missing config/SMTP failed).")
    return ok
