import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from html import escape
from typing import Dict, List
import logging

from .. import config
from ..errors import NotificationError

logger = logging.getLogger(__name__)

LOGIN_ALERT_SUBJECT = "Wallet Login Alert"

_LOGIN_ALERT_TEMPLATE = """
<h2>Wallet Login Successful</h2>
<p><strong>Wallet Address:</strong> {address}</p>
<p><strong>User Email:</strong> {email}</p>
<p><strong>Time:</strong> {timestamp}</p>
<p><strong>IP Address:</strong> {source_ip}</p>

<hr />

<p style="color:red;">&#9888;&#65039; Security Reminder</p>
<ul>
  <li>Never share your private key</li>
  <li>Never share your seed phrase</li>
  <li>No real dApp will ever ask for them</li>
</ul>
"""


def render_login_alert(body_fields: Dict[str, str]) -> str:
    """Renders the HTML body of a login alert. All values are HTML-escaped."""
    return _LOGIN_ALERT_TEMPLATE.format(
        **{key: escape(str(body_fields.get(key, ""))) for key in ("address", "email", "timestamp", "source_ip")}
    )


class SmtpNotifier:
    """Sends login alerts through a plain SMTP relay."""

    def __init__(
        self,
        host: str | None = None,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = False,
        from_name: str = "Wallet Security",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_name = from_name
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.host and self.username)

    def _connect(self) -> smtplib.SMTP:
        smtp = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        try:
            if self.use_tls:
                smtp.starttls()
            if self.password:
                smtp.login(self.username, self.password)
        except Exception:
            smtp.close()
            raise
        return smtp

    def verify_connection(self) -> bool:
        """Checks that the SMTP server accepts a connection (and login, if set)."""
        if not self.configured:
            logger.warning("Email transport not configured. Skipping connection check.")
            return False
        try:
            with self._connect() as smtp:
                smtp.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email server check failed ({self.host}:{self.port}): {e}")
            return False
        logger.info("Email server ready")
        return True

    def send(self, to_address_email: str, to_monitoring_email: str | None, subject: str, body_fields: Dict[str, str]) -> None:
        """
        Sends one HTML alert to the address owner and the monitoring mailbox.

        Raises NotificationError when the transport is not configured; SMTP
        errors propagate to the caller.
        """
        if not self.configured:
            raise NotificationError("Email transport not configured (EMAIL_HOST / EMAIL_USER missing).")

        recipients: List[str] = [to_address_email]
        if to_monitoring_email and to_monitoring_email != to_address_email:
            recipients.append(to_monitoring_email)

        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.username))
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(render_login_alert(body_fields), subtype="html")

        with self._connect() as smtp:
            smtp.send_message(message)
        logger.info(f"Email sent to USER & SYSTEM EMAIL | Address: {body_fields.get('address')}")


_notifier = SmtpNotifier(
    host=config.EMAIL_HOST,
    port=config.EMAIL_PORT,
    username=config.EMAIL_USER,
    password=config.EMAIL_PASSWORD,
    use_tls=config.EMAIL_USE_TLS,
    from_name=config.EMAIL_FROM_NAME,
)

def get_notifier() -> SmtpNotifier:
    """FastAPI dependency returning the configured notifier."""
    return _notifier
