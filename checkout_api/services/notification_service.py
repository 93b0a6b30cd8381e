"""
Notification service — tells clients when a payment attempt was rejected.

Payment requests must never wait on mail delivery, so notices go through
an in-process asyncio.Queue:

    payment_service --notify_rejection()--> queue --worker tasks--> MailSender

  - notify_rejection() never blocks and never raises. When the queue is
    full the notice is dropped and a warning is logged.
  - Workers log delivery failures and keep going.
  - start()/stop() are called from the application lifespan in main.py.

Senders:
  - LogMailSender (MAIL_BACKEND=log, default): writes the notice to the log
  - SmtpMailSender (MAIL_BACKEND=smtp): sends an HTML email with smtplib,
    run in a worker thread so the event loop is not blocked
"""

import abc
import asyncio
import logging
import smtplib
import uuid
from dataclasses import dataclass
from decimal import Decimal
from email.message import EmailMessage

from checkout_api.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RejectionNotice:
    """Everything a worker needs to address the client, captured at rejection time."""
    client_id: uuid.UUID
    email: str
    first_name: str
    last_name: str
    order_id: uuid.UUID
    amount: Decimal
    reason: str

    @property
    def subject(self) -> str:
        return f"Pago Rechazado para el Pedido #{str(self.order_id)[:8]}"

    def html_body(self) -> str:
        return (
            "<!DOCTYPE html><html><body>"
            f"<h4>Estimado(a) {self.first_name} {self.last_name},</h4>"
            f"<p>Su intento de pago para el Pedido #{self.order_id} por un monto de "
            f"<b>{self.amount}$</b> ha sido RECHAZADO.</p>"
            f"<p style='color: red;'>Motivo del rechazo: {self.reason}</p>"
            "<p>Por favor, intente con otro método de pago o contacte a soporte.</p>"
            "</body></html>"
        )


class MailSender(abc.ABC):
    """Interface for delivering rejection notices."""

    @abc.abstractmethod
    async def send_rejection(self, notice: RejectionNotice) -> None:
        ...


class LogMailSender(MailSender):
    """Writes notices to the application log instead of sending mail."""

    async def send_rejection(self, notice: RejectionNotice) -> None:
        logger.info(
            "Rejection notice for order %s to %s: %s",
            notice.order_id, notice.email, notice.subject,
        )


class SmtpMailSender(MailSender):
    """Sends notices as HTML email through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls

    def build_message(self, notice: RejectionNotice) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = notice.email
        message["Subject"] = notice.subject
        message.set_content(f"Motivo del rechazo: {notice.reason}")
        message.add_alternative(notice.html_body(), subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username:
                smtp.login(self.username, self.password or "")
            smtp.send_message(message)

    async def send_rejection(self, notice: RejectionNotice) -> None:
        await asyncio.to_thread(self._deliver, self.build_message(notice))
        logger.info("Rejection email sent to %s for order %s", notice.email, notice.order_id)


class RejectionNotifier:
    """
    Bounded queue plus a small pool of worker tasks.

    Args:
        sender: Where notices are delivered.
        queue_size: Maximum notices waiting for delivery.
        workers: Number of concurrent worker tasks.
    """

    def __init__(self, sender: MailSender, queue_size: int = 100, workers: int = 2):
        self.sender = sender
        self.workers = workers
        self._queue: asyncio.Queue[RejectionNotice] = asyncio.Queue(maxsize=queue_size)
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._worker(n), name=f"rejection-notifier-{n}")
            for n in range(self.workers)
        ]
        logger.info("Rejection notifier started with %d worker(s)", self.workers)

    async def stop(self) -> None:
        """Cancel the workers. Notices still queued are discarded."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        if not self._queue.empty():
            logger.warning("Rejection notifier stopped with %d notice(s) undelivered", self._queue.qsize())

    def notify_rejection(self, notice: RejectionNotice) -> None:
        """Enqueue a notice without waiting. Drops it if the queue is full."""
        try:
            self._queue.put_nowait(notice)
        except asyncio.QueueFull:
            logger.warning(
                "Notification queue full, dropping rejection notice for order %s",
                notice.order_id,
            )

    async def join(self) -> None:
        """Wait until every queued notice has been handled."""
        await self._queue.join()

    async def _worker(self, n: int) -> None:
        while True:
            notice = await self._queue.get()
            try:
                await self.sender.send_rejection(notice)
            except Exception:
                logger.exception(
                    "Worker %d failed to deliver rejection notice for order %s",
                    n, notice.order_id,
                )
            finally:
                self._queue.task_done()


def build_sender() -> MailSender:
    """Pick the mail sender configured by MAIL_BACKEND."""
    if settings.MAIL_BACKEND.lower() == "smtp":
        return SmtpMailSender(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.MAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
        )
    return LogMailSender()


# Application-wide notifier, started and stopped by the lifespan in main.py
notifier = RejectionNotifier(
    build_sender(),
    queue_size=settings.NOTIFIER_QUEUE_SIZE,
    workers=settings.NOTIFIER_WORKERS,
)
