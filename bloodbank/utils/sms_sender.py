"""Simple SNS SMS helper."""

from __future__ import annotations

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings


def get_sns_client():
    return boto3.client("sns", region_name=settings.AWS_SNS_REGION)


def send_sms(phone: str, message: str, *, sns_client=None):
    """Send a one-off SMS via AWS SNS."""

    client = sns_client or get_sns_client()
    attributes = {
        'AWS.SNS.SMS.SMSType': {
            'DataType': 'String',
            'StringValue': getattr(settings, 'AWS_SNS_SMS_TYPE', 'Transactional'),
        }
    }
    sender_id = getattr(settings, 'AWS_SNS_SENDER_ID', '')
    if sender_id:
        attributes['AWS.SNS.SMS.SenderID'] = {'DataType': 'String', 'StringValue': sender_id[:11]}

    try:
        response = client.publish(PhoneNumber=phone, Message=message, MessageAttributes=attributes)
        return {"status": "success", "to": phone, "response": response}
    except (BotoCoreError, ClientError) as exc:
        return {"status": "error", "to": phone, "message": str(exc)}
