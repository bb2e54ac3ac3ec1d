"""SMTP email delivery."""

import asyncio
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from food_recognition.services.email import EmailSender


@dataclass
class SmtpEmailSender(EmailSender):
    """Send plain-text email over SMTP with STARTTLS."""

    host: str
    port: int
    username: str
    password: str
    from_address: str
    timeout: float = 10.0

    async def send(self, *, to: str, subject: str, text: str) -> None:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)
        await asyncio.to_thread(self._deliver, message)

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password)
            smtp.send_message(message)
