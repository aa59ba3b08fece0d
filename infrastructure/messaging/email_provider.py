import logging

import requests

log = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"


class EmailProvider:
    """Sends sign-in passcodes through the EmailJS REST API."""

    def __init__(self, service_id: str, template_id: str, public_key: str, timeout: int = 10):
        self.service_id = service_id
        self.template_id = template_id
        self.public_key = public_key
        self.timeout = timeout

    def send_code(self, address: str, display_name: str, code: str) -> tuple[bool, str]:
        """
        Sends the passcode email.
        Returns a tuple of (delivered, status_message). `delivered` is True only
        once the provider has accepted the message (HTTP 200), not when the
        request was merely issued.
        """
        if not self.service_id or not self.template_id or not self.public_key:
            return False, "Email delivery is not configured."
        if not address:
            return False, "No destination address."

        payload = {
            "service_id": self.service_id,
            "template_id": self.template_id,
            "user_id": self.public_key,
            "template_params": {
                "to_email": address,
                "to_name": display_name,
                "passcode": code,
            },
        }

        try:
            response = requests.post(EMAILJS_SEND_URL, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            log.error(f"Network error while sending passcode to {address}: {e}")
            return False, f"Network error: {e}"

        if response.status_code == 200:
            log.info(f"Passcode email accepted for {address}")
            return True, "Passcode sent."
        log.error(f"Email provider rejected passcode for {address}: HTTP {response.status_code}")
        return False, f"Email provider error: HTTP {response.status_code}"
