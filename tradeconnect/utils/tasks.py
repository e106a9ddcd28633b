# TradeConnect
# Copyright (C) 2025 TradeConnect Team
#
# This file is part of TradeConnect and is dual-licensed:
#
# 1. Under the terms of the GNU Affero General Public License (AGPL) version 3,
#    as published by the Free Software Foundation. You may use, modify, and
#    distribute this file under those terms.
#
# 2. Under a commercial license, allowing use in closed-source or proprietary
#    environments without the obligations of the AGPL.
#
# If you have obtained this file under the AGPL, and you make it available over
# a network, you must also make the complete source code available under the same license.
#
# For more information or to purchase a commercial license, contact
# the TradeConnect Team.
#
# SPDX-License-Identifier: AGPL-3.0-or-later OR Proprietary

import logging
import re
import traceback
from functools import wraps
from typing import Any, Callable, Optional, Union

from background_task import background
from django.conf import settings as conf_settings
from django.core.exceptions import ObjectDoesNotExist
from django.core.mail import EmailMultiAlternatives, get_connection, mail_admins
from django.utils import timezone
from django.utils.html import strip_tags

from tradeconnect.models.campaign import Email
from tradeconnect.models.member import Member
from tradeconnect.models.organization import Organization

logger = logging.getLogger(__name__)

INTERNAL_KWARGS = {"schedule", "repeat", "repeat_until", "remove_existing_tasks"}


def background_auto(schedule=0, **background_kwargs):
    """Decorator to conditionally run functions as background tasks.

    When AUTO_BACKGROUND_TASKS is set the wrapped function runs synchronously,
    otherwise it is queued through django-background-tasks.

    Args:
        schedule (int): Seconds to delay before execution
        **background_kwargs: Additional arguments for background task

    Returns:
        function: Decorator function
    """

    def decorator(original_function: Callable[..., Any]) -> Callable[..., Any]:
        background_task = background(schedule=schedule, **background_kwargs)(original_function)

        @wraps(original_function)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if getattr(conf_settings, "AUTO_BACKGROUND_TASKS", False):
                filtered_kwargs = {key: value for key, value in kwargs.items() if key not in INTERNAL_KWARGS}
                return original_function(*args, **filtered_kwargs)
            return background_task(*args, **kwargs)

        wrapper.task = background_task
        wrapper.task_function = original_function
        return wrapper

    return decorator


# MAIL


def mail_error(subj, body, e=None):
    """Log a failed delivery and forward the details to the administrators."""
    logger.error(f"Mail error: {e}")
    logger.error(f"Subject: {subj}")
    if e:
        body = f"{traceback.format_exc()} <br /><br /> {subj} <br /><br /> {body}"
    else:
        body = f"{subj} <br /><br /> {body}"
    try:
        mail_admins("Mail error", strip_tags(body), html_message=body)
    except Exception as err:
        logger.exception(f"Unable to notify mail error: {err}")


@background_auto(queue="mail")
def my_send_mail_bkg(email_pk):
    """Background task to send a queued email, marking it as sent."""
    try:
        email = Email.objects.get(pk=email_pk)
    except ObjectDoesNotExist:
        return

    if email.sent:
        logger.info("Email already sent!")
        return

    my_send_simple_mail(email.subj, email.body, email.recipient, email.organization_id, email.reply_to)

    email.sent = timezone.now()
    email.save()


def clean_sender(sender_name):
    """Clean sender name for email headers by removing special characters."""
    sender_name = sender_name.replace(":", " ")
    sender_name = sender_name.split(",")[0]
    sender_name = re.sub(r"[^a-zA-Z0-9\s\-\']", "", sender_name)
    sender_name = re.sub(r"\s+", " ", sender_name).strip()
    return sender_name


def my_send_simple_mail(
    subj: str,
    body: str,
    m_email: str,
    organization_id: int | None = None,
    reply_to: str | None = None,
) -> None:
    """Send email with organization-specific configuration.

    Organizations may define their own SMTP server through the configs
    mail_server_host, mail_server_port, mail_server_host_user,
    mail_server_host_password and mail_server_use_tls; otherwise the default
    connection and DEFAULT_FROM_EMAIL are used.

    Args:
        subj: Email subject line
        body: Email body content (HTML format)
        m_email: Recipient email address
        organization_id: Organization for custom SMTP settings and sender name
        reply_to: Custom Reply-To email address header

    Raises:
        Exception: Re-raises email sending exceptions after logging error details
    """
    email_headers = {}
    bcc_recipients = []

    smtp_connection = None
    sender_email = conf_settings.DEFAULT_FROM_EMAIL
    sender = f"TradeConnect <{sender_email}>"

    try:
        if organization_id:
            organization = Organization.objects.get(pk=organization_id)

            if organization.get_config("mail_cc", False, bypass_cache=True) and organization.main_mail:
                bcc_recipients.append(organization.main_mail)

            smtp_host_user = organization.get_config("mail_server_host_user", "", bypass_cache=True)
            if smtp_host_user:
                sender_email = smtp_host_user
                smtp_connection = get_connection(
                    host=organization.get_config("mail_server_host", "", bypass_cache=True),
                    port=organization.get_config("mail_server_port", "", bypass_cache=True),
                    username=smtp_host_user,
                    password=organization.get_config("mail_server_host_password", "", bypass_cache=True),
                    use_tls=organization.get_config("mail_server_use_tls", False, bypass_cache=True),
                )
            sender = f"{clean_sender(organization.name)} <{sender_email}>"

        if not smtp_connection:
            smtp_connection = get_connection()

        if reply_to:
            email_headers["Reply-To"] = reply_to

        email_headers["List-Unsubscribe"] = f"<mailto:{sender_email}>"

        email_message = EmailMultiAlternatives(
            subj,
            strip_tags(body),
            sender,
            [m_email],
            bcc=bcc_recipients,
            headers=email_headers,
            connection=smtp_connection,
        )
        email_message.attach_alternative(body, "text/html")
        email_message.send()

        if conf_settings.DEBUG:
            logger.info(f"Sending email to: {m_email}")
            logger.info(f"Subject: {subj}")
            logger.debug(f"Body: {body}")

    except Exception as email_sending_exception:
        mail_error(subj, body, email_sending_exception)
        raise email_sending_exception


def my_send_mail(
    subject: str,
    body: str,
    recipient: Union[str, Member],
    context_object: Optional[Any] = None,
    reply_to: Optional[str] = None,
    schedule: int = 0,
) -> Email:
    """Queue email for sending.

    Args:
        subject: Email subject line
        body: Email body content (HTML or plain text)
        recipient: Email recipient address or Member instance
        context_object: Organization, or any object with an organization_id or event,
            used to pick the sender configuration
        reply_to: Custom reply-to email address
        schedule: Delay in seconds before sending email

    Returns:
        The queued Email record
    """
    subject = subject.replace("  ", " ")

    organization_id = None
    if context_object:
        if isinstance(context_object, Organization):
            organization_id = context_object.id
        elif getattr(context_object, "organization_id", None):
            organization_id = context_object.organization_id
        elif getattr(context_object, "event_id", None):
            organization_id = context_object.event.organization_id

    if isinstance(recipient, Member):
        recipient = recipient.email

    email = Email.objects.create(
        organization_id=organization_id,
        recipient=recipient,
        subj=str(subject),
        body=str(body),
        reply_to=reply_to,
    )

    my_send_mail_bkg(email.pk, schedule=schedule)
    return email


def notify_admins(subject, message_text, exception=None):
    """Send notification email to system administrators, with the traceback if given."""
    if exception:
        traceback_text = "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))
        message_text += "\n" + traceback_text
    for _name, email in conf_settings.ADMINS:
        my_send_mail(subject, message_text, email)
