"""
Out-of-band delivery of one-time codes through Amazon SES.
"""

from typing import Any

import boto3


SUBJECTS = {
    'SIGNUP': 'Your verification code',
    'PASSWORD_RESET': 'Your password reset code',
}

BODIES = {
    'SIGNUP': 'Your verification code is:\n\n{code}\n\nIt expires in {minutes} minutes.',
    'PASSWORD_RESET': (
        'Use this code to reset your password:\n\n{code}\n\n'
        'It expires in {minutes} minutes. If you did not ask for a reset, ignore this email.'
    ),
}


class SesCodeMailer:
    """Sends verification and reset codes from a verified SES identity."""

    def __init__(self, source_email: str, client: Any = None):
        """
        Args:
            source_email: Verified SES sender address
            client: Pre-built SES client (optional)
        """
        if not source_email:
            raise ValueError('A source email identity is required')

        self.source_email = source_email
        self.ses = client if client is not None else boto3.client('ses')

    def send_code(self, email: str, code: str, purpose: str, ttl_seconds: int) -> None:
        """
        Deliver a code to its owner.

        Raises:
            botocore.exceptions.ClientError: If SES rejects the message
        """
        self.ses.send_email(
            Source=self.source_email,
            Destination={'ToAddresses': [email]},
            Message={
                'Subject': {'Data': SUBJECTS[purpose]},
                'Body': {
                    'Text': {
                        'Data': BODIES[purpose].format(code=code, minutes=ttl_seconds // 60)
                    }
                }
            }
        )
