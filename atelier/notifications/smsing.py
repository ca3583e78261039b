"""
SMSING.APP client for SMS and WhatsApp Business messages.

Both channels share one HTTP GET endpoint; the ``type`` parameter selects the
channel. A send is successful when the provider answers with status
``queued`` or ``success``.
"""
import logging
from collections import namedtuple

import requests
from django.conf import settings

from atelier.core.utils import format_phone_number

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = ('queued', 'success')

SendResult = namedtuple('SendResult', ['success', 'message_id', 'error'])


class SmsingClient:
    def __init__(self, api_url=None, api_key=None, api_token=None, sender_id=None, logo_url=None, timeout=None):
        self.api_url = api_url or settings.SMSING_API_URL
        self.api_key = api_key if api_key is not None else settings.SMSING_API_KEY
        self.api_token = api_token if api_token is not None else settings.SMSING_API_TOKEN
        self.sender_id = sender_id or settings.SMSING_SENDER_ID
        self.logo_url = logo_url if logo_url is not None else settings.SMSING_LOGO_URL
        self.timeout = timeout or settings.HTTP_TIMEOUT

    @property
    def is_configured(self):
        return bool(self.api_key and self.api_token)

    def _send(self, message_type, to, message, media_url=None):
        phone = format_phone_number(to)
        if not phone:
            return SendResult(False, None, 'Invalid recipient phone number')
        if not self.is_configured:
            logger.warning(f"SMSING credentials missing, {message_type} to {phone} not sent")
            return SendResult(False, None, 'SMS provider not configured')

        params = {
            'sendsms': '1',
            'apikey': self.api_key,
            'apitoken': self.api_token,
            'type': message_type,
            'from': self.sender_id,
            'to': phone,
            'text': message,
        }
        if media_url:
            params['file'] = media_url

        try:
            response = requests.get(self.api_url, params=params, timeout=self.timeout)
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"SMSING {message_type} request to {phone} failed: {str(e)}")
            return SendResult(False, None, str(e))
        except ValueError:
            logger.error(f"SMSING {message_type} returned a non-JSON response (HTTP {response.status_code})")
            return SendResult(False, None, f"Invalid provider response (HTTP {response.status_code})")

        if isinstance(data, dict) and data.get('status') in SUCCESS_STATUSES:
            message_id = data.get('group_id') or data.get('id')
            logger.info(f"SMSING {message_type} queued for {phone} (id={message_id})")
            return SendResult(True, str(message_id) if message_id else None, None)

        error = (data.get('message') or data.get('status')) if isinstance(data, dict) else None
        logger.warning(f"SMSING {message_type} to {phone} rejected: {error}")
        return SendResult(False, None, error or f'Failed to send {message_type}')

    def send_sms(self, to, message):
        return self._send('sms', to, message)

    def send_whatsapp(self, to, message, media_url=None):
        """WhatsApp Business message; the shop logo is attached unless another media is given"""
        return self._send('whatsapp', to, message, media_url=media_url or self.logo_url or None)


def get_client():
    return SmsingClient()
