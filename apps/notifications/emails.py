import logging

import resend
from django.conf import settings
from django.utils import timezone
from django.utils.html import escape

logger = logging.getLogger(__name__)


def _layout(title, body):
    year = timezone.now().year
    return f"""
    <html>
    <body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f9f9f9;">
        <table width="100%" style="border-collapse: collapse; background-color: #f9f9f9;">
            <tr>
                <td align="center">
                    <table width="600px" style="background-color: #ffffff; border-radius: 8px; margin: 20px 0;">
                        <tr>
                            <td style="background-color: #0f766e; color: #ffffff; padding: 20px; text-align: center;">
                                <h1 style="margin: 0; font-size: 22px;">{title}</h1>
                            </td>
                        </tr>
                        <tr>
                            <td style="padding: 20px; color: #333; font-size: 16px; line-height: 1.5;">
                                {body}
                            </td>
                        </tr>
                        <tr>
                            <td style="background-color: #f1f1f1; text-align: center; padding: 10px; font-size: 14px; color: #888;">
                                <p style="margin: 0;">&copy; {year} Storefront. All rights reserved.</p>
                            </td>
                        </tr>
                    </table>
                </td>
            </tr>
        </table>
    </body>
    </html>
    """


def send_email(to, subject, html):
    """
    Sends through Resend. Returns False without sending when no API key is set.
    """
    if not settings.RESEND_API_KEY:
        logger.warning(f"RESEND_API_KEY not configured, skipping email '{subject}' to {to}")
        return False

    resend.api_key = settings.RESEND_API_KEY
    params: resend.Emails.SendParams = {
        "from": settings.EMAIL_FROM,
        "to": [to],
        "subject": subject,
        "html": html,
    }
    resend.Emails.send(params)
    return True


def role_approved_email(user_name, store_name, role_name):
    user_name, store_name, role_name = escape(user_name), escape(store_name), escape(role_name)
    body = f"""
        <p>Hi {user_name},</p>
        <p>Your custom role request for <strong>{store_name}</strong> has been <strong>approved</strong>.</p>
        <p><strong>{role_name}</strong> is now available to assign to staff members in your store.</p>
        <p style="text-align: center;">
            <a href="{settings.APP_URL}/dashboard/stores" style="color: #0f766e;">Manage Roles</a>
        </p>
    """
    return _layout("Role Approved", body)


def role_rejected_email(user_name, store_name, role_name, reason):
    user_name, store_name, role_name = escape(user_name), escape(store_name), escape(role_name)
    body = f"""
        <p>Hi {user_name},</p>
        <p>Your custom role request <strong>{role_name}</strong> for <strong>{store_name}</strong> was not approved.</p>
        <p><strong>Reason:</strong> {escape(reason)}</p>
        <p>You can submit a new request with an updated permission set at any time.</p>
        <p style="text-align: center;">
            <a href="{settings.APP_URL}/dashboard/stores" style="color: #0f766e;">View Requests</a>
        </p>
    """
    return _layout("Role Request Update", body)


def staff_invited_email(user_name, store_name, role_name):
    user_name, store_name, role_name = escape(user_name), escape(store_name), escape(role_name)
    body = f"""
        <p>Hi {user_name},</p>
        <p>You have been invited to join <strong>{store_name}</strong> as <strong>{role_name}</strong>.</p>
        <p style="text-align: center;">
            <a href="{settings.APP_URL}/dashboard" style="color: #0f766e;">Open Dashboard</a>
        </p>
    """
    return _layout("Store Invitation", body)
