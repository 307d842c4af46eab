"""Delivery of one-time codes to an email address or a phone number."""

import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage

import requests
from cardvault.config import Config, get_config
from cardvault.models.otp_challenge import OtpChannel
from fastapi import Depends

logger = logging.getLogger(__name__)


class ChannelDispatcher(ABC):
    @abstractmethod
    def send(self, channel: OtpChannel, destination: str, message: str) -> bool:
        """Deliver a message. Returns True when the provider accepted it."""


class SmtpEmailSender:
    subject = "Your card activation code"

    def __init__(self, config: Config):
        self.config = config

    @property
    def configured(self) -> bool:
        return bool(self.config.smtp_host and self.config.smtp_from)

    def send(self, destination: str, message: str) -> None:
        email = EmailMessage()
        email["From"] = self.config.smtp_from
        email["To"] = destination
        email["Subject"] = self.subject
        email.set_content(message)

        with smtplib.SMTP(
            self.config.smtp_host,
            self.config.smtp_port,
            timeout=self.config.dispatch_timeout_seconds,
        ) as smtp:
            if self.config.smtp_use_tls:
                smtp.starttls(context=ssl.create_default_context())
            if self.config.smtp_username:
                smtp.login(self.config.smtp_username, self.config.smtp_password or "")
            smtp.send_message(email)


class HttpSmsSender:
    def __init__(self, config: Config):
        self.config = config

    @property
    def configured(self) -> bool:
        return bool(self.config.sms_gateway_url)

    def send(self, destination: str, message: str) -> None:
        headers = {}
        if self.config.sms_gateway_token:
            headers["Authorization"] = f"Bearer {self.config.sms_gateway_token}"
        payload = {"to": destination, "text": message}
        if self.config.sms_sender:
            payload["from"] = self.config.sms_sender
        response = requests.post(
            self.config.sms_gateway_url,
            json=payload,
            headers=headers,
            timeout=self.config.dispatch_timeout_seconds,
        )
        response.raise_for_status()


class GatewayDispatcher(ChannelDispatcher):
    """Routes email to SMTP and SMS to an HTTP gateway."""

    def __init__(self, config: Config):
        self.senders = {
            OtpChannel.EMAIL: SmtpEmailSender(config),
            OtpChannel.SMS: HttpSmsSender(config),
        }

    def send(self, channel: OtpChannel, destination: str, message: str) -> bool:
        sender = self.senders[channel]
        if not sender.configured:
            logger.error("GatewayDispatcher: %s channel is not configured", channel.value)
            return False
        try:
            sender.send(destination, message)
        except (OSError, smtplib.SMTPException, requests.RequestException) as exc:
            logger.error(
                "GatewayDispatcher: %s delivery failed: %s", channel.value, exc
            )
            return False
        logger.info("GatewayDispatcher: %s message accepted by provider", channel.value)
        return True


def get_dispatcher(config: Config = Depends(get_config)) -> ChannelDispatcher:
    return GatewayDispatcher(config)
