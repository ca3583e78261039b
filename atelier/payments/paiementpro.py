"""
PaiementPro gateway client.

Initialization POSTs a JSON body and returns a hosted payment page URL; the
outcome arrives on the webhook and can be polled with ``check_status``.
"""
import hashlib
import hmac
import logging
import random
import string
import time

import requests
from django.conf import settings

from atelier.core.utils import format_phone_number

logger = logging.getLogger(__name__)

# Gateway channel code -> payment method recorded on invoices
CHANNEL_PAYMENT_METHODS = {
    'OMCIV2': 'ORANGE_MONEY',
    'MOMOCI': 'MTN_MONEY',
    'FLOOZ': 'MOBILE_MONEY',
    'WAVECI': 'WAVE',
    'CARD': 'CARD',
}

# Order payment method -> gateway channel preselected on the payment page
ORDER_METHOD_CHANNELS = {
    'ORANGE_MONEY': 'OMCIV2',
    'MTN_MONEY': 'MOMOCI',
    'MOOV_MONEY': 'FLOOZ',
    'WAVE': 'WAVECI',
    'CARD': 'CARD',
}


class PaymentGatewayError(Exception):
    """Raised when the gateway cannot be reached or answers garbage"""


def generate_reference(prefix='CMD'):
    """PREFIX-<milliseconds>-<6 uppercase alphanumerics>"""
    timestamp = int(time.time() * 1000)
    suffix = ''.join(random.choices(string.ascii_uppercase + string.digits, k=6))
    return f"{prefix}-{timestamp}-{suffix}"


def generate_hashcode(data, secret):
    """HMAC-SHA256 over the sorted key=value pairs joined with &"""
    message = '&'.join(f"{key}={data[key]}" for key in sorted(data))
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def verify_webhook_hash(payload, secret):
    received = payload.get('hashcode')
    if not received or not secret:
        return False
    data = {key: value for key, value in payload.items() if key != 'hashcode'}
    return hmac.compare_digest(generate_hashcode(data, secret), str(received))


def channel_to_payment_method(channel):
    return CHANNEL_PAYMENT_METHODS.get(channel or '', 'OTHER')


class PaiementProClient:
    def __init__(self, merchant_id=None, init_url=None, status_url=None, currency=None, timeout=None):
        self.merchant_id = merchant_id if merchant_id is not None else settings.PAIEMENTPRO_MERCHANT_ID
        self.init_url = init_url or settings.PAIEMENTPRO_INIT_URL
        self.status_url = (status_url or settings.PAIEMENTPRO_STATUS_URL).rstrip('/')
        self.currency = currency or settings.PAIEMENTPRO_CURRENCY
        self.timeout = timeout or settings.HTTP_TIMEOUT

    def initialize(self, amount, reference, customer_email='', customer_first_name='', customer_last_name='',
                   customer_phone='', description='', channel='', notification_url='', return_url='',
                   return_context=None):
        """
        Open a payment session.

        Returns {'success', 'url', 'reference', 'error'}; raises
        PaymentGatewayError on network failures.
        """
        if not self.merchant_id:
            raise PaymentGatewayError('PAIEMENTPRO_MERCHANT_ID is not configured')

        body = {
            'merchantId': self.merchant_id,
            'amount': int(round(float(amount))),
            'description': description or 'Paiement en ligne',
            'channel': channel or '',
            'countryCurrencyCode': self.currency,
            'referenceNumber': reference,
            'customerEmail': customer_email or '',
            'customerFirstName': customer_first_name or '',
            'customerLastname': customer_last_name or '',
            'customerPhoneNumber': format_phone_number(customer_phone),
            'notificationURL': notification_url,
            'returnURL': return_url,
            'returnContext': '&'.join(f"{key}={value}" for key, value in (return_context or {}).items()),
        }
        logger.info(f"PaiementPro: initializing {reference} for {body['amount']}")
        try:
            response = requests.post(self.init_url, json=body, timeout=self.timeout,
                                     headers={'Accept': 'application/json'})
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"PaiementPro initialization of {reference} failed: {str(e)}")
            raise PaymentGatewayError(str(e)) from e
        except ValueError as e:
            raise PaymentGatewayError(f"Invalid gateway response (HTTP {response.status_code})") from e

        if data.get('success') and data.get('url'):
            return {'success': True, 'url': data['url'], 'reference': reference, 'error': None}
        error = data.get('message') or data.get('error') or 'Initialization failed'
        logger.warning(f"PaiementPro refused {reference}: {error}")
        return {'success': False, 'url': None, 'reference': reference, 'error': error}

    def check_status(self, reference):
        """Raw status payload for a reference; raises PaymentGatewayError"""
        try:
            response = requests.get(f"{self.status_url}/{reference}", timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.warning(f"PaiementPro status check for {reference} failed: {str(e)}")
            raise PaymentGatewayError(str(e)) from e
        except ValueError as e:
            raise PaymentGatewayError('Invalid gateway status response') from e


def get_client():
    return PaiementProClient()
