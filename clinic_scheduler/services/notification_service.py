"""Appointment e-mail notifications delivered off the request path."""

import asyncio
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from enum import Enum
from typing import Protocol

import structlog

from clinic_scheduler.config import Settings, settings
from clinic_scheduler.schemas.appointments import AppointmentResponse
from clinic_scheduler.schemas.directory import DoctorSummary, PatientContact

logger = structlog.get_logger(__name__)


class NotificationEvent(str, Enum):
    """Kinds of appointment notification."""

    BOOKED = "booked"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class AppointmentNotification:
    """A queued notification about one appointment."""

    event: NotificationEvent
    appointment: AppointmentResponse
    doctor: DoctorSummary | None
    patient: PatientContact | None


class Notifier(Protocol):
    """Fire-and-forget hook used by the appointment service."""

    def notify_booked(
        self,
        appointment: AppointmentResponse,
        doctor: DoctorSummary | None,
        patient: PatientContact | None,
    ) -> None: ...

    def notify_cancelled(
        self,
        appointment: AppointmentResponse,
        doctor: DoctorSummary | None,
        patient: PatientContact | None,
    ) -> None: ...


class EmailSender:
    """Renders appointment notifications and sends them over SMTP."""

    def __init__(self, config: Settings = settings):
        """Initialize sender from settings."""
        self.config = config

    @property
    def enabled(self) -> bool:
        """SMTP delivery is enabled only when a host is configured."""
        return bool(self.config.smtp_host)

    def render(self, notification: AppointmentNotification) -> EmailMessage:
        """Build the e-mail for a notification."""
        appointment = notification.appointment
        doctor_name = notification.doctor.full_name if notification.doctor else "your doctor"
        patient_name = notification.patient.first_name if notification.patient else "Patient"

        message = EmailMessage()
        message["From"] = self.config.email_from
        message["To"] = notification.patient.email if notification.patient else ""

        details = (
            f"<li>Date: {appointment.appointment_date.isoformat()}</li>"
            f"<li>Time: {appointment.start_time} - {appointment.end_time}</li>"
            f"<li>Doctor: {doctor_name}</li>"
        )

        if notification.event == NotificationEvent.BOOKED:
            message["Subject"] = "Appointment Confirmation"
            text = (
                f"Dear {patient_name},\n\nYour appointment with {doctor_name} on "
                f"{appointment.appointment_date.isoformat()} at {appointment.start_time} "
                f"({appointment.consultation_location}) is confirmed."
            )
            html = (
                "<h1>Appointment Confirmed</h1>"
                f"<p>Dear {patient_name},</p>"
                "<p>Your appointment has been successfully booked:</p>"
                f"<ul>{details}<li>Location: {appointment.consultation_location}</li></ul>"
            )
        else:
            message["Subject"] = "Appointment Cancellation"
            text = (
                f"Dear {patient_name},\n\nYour appointment with {doctor_name} on "
                f"{appointment.appointment_date.isoformat()} at {appointment.start_time} "
                "has been cancelled."
            )
            html = (
                "<h1>Appointment Cancelled</h1>"
                f"<p>Dear {patient_name},</p>"
                "<p>Your appointment has been cancelled:</p>"
                f"<ul>{details}</ul>"
                "<p>If this was not intended, please contact our support.</p>"
            )

        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    def _send_sync(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=30) as server:
            if self.config.smtp_use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.config.smtp_username and self.config.smtp_password:
                server.login(self.config.smtp_username, self.config.smtp_password)
            server.send_message(message)

    async def send(self, notification: AppointmentNotification) -> bool:
        """
        Deliver one notification.

        Returns:
            True if an e-mail was handed to the SMTP server, False if skipped

        Raises:
            smtplib.SMTPException, OSError: On delivery failure
        """
        if not self.enabled:
            logger.info(
                "notification_email_disabled",
                notification_event=notification.event.value,
                appointment_id=str(notification.appointment.id),
            )
            return False

        if notification.patient is None:
            logger.warning(
                "notification_recipient_missing",
                appointment_id=str(notification.appointment.id),
            )
            return False

        message = self.render(notification)
        await asyncio.to_thread(self._send_sync, message)
        return True


class NotificationDispatcher:
    """
    Bounded queue of notifications drained by a background worker.

    ``notify_*`` never block and never raise; a full queue drops the message
    with a warning. Delivery failures are retried with exponential backoff and
    finally logged.
    """

    def __init__(
        self,
        sender: EmailSender,
        queue_size: int = 1000,
        max_retries: int = 3,
        retry_backoff_seconds: float = 1.0,
    ):
        """Initialize dispatcher with a sender and retry policy."""
        self.sender = sender
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self._queue: asyncio.Queue[AppointmentNotification] = asyncio.Queue(maxsize=queue_size)
        self._worker: asyncio.Task[None] | None = None

    @property
    def pending(self) -> int:
        """Number of queued notifications."""
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        """Whether the worker task is alive."""
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker task on the running loop."""
        if self.is_running:
            return
        self._worker = asyncio.create_task(self._run(), name="notification-worker")
        logger.info("notification_worker_started")

    async def stop(self, drain_timeout: float = 10.0) -> None:
        """Drain the queue (bounded by ``drain_timeout``) and stop the worker."""
        if self._worker is None:
            return

        try:
            await asyncio.wait_for(self._queue.join(), timeout=drain_timeout)
        except TimeoutError:
            logger.warning("notification_drain_timeout", pending=self.pending)

        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        logger.info("notification_worker_stopped")

    def notify_booked(
        self,
        appointment: AppointmentResponse,
        doctor: DoctorSummary | None,
        patient: PatientContact | None,
    ) -> None:
        """Queue a booking confirmation."""
        self._enqueue(
            AppointmentNotification(NotificationEvent.BOOKED, appointment, doctor, patient)
        )

    def notify_cancelled(
        self,
        appointment: AppointmentResponse,
        doctor: DoctorSummary | None,
        patient: PatientContact | None,
    ) -> None:
        """Queue a cancellation notice."""
        self._enqueue(
            AppointmentNotification(NotificationEvent.CANCELLED, appointment, doctor, patient)
        )

    def _enqueue(self, notification: AppointmentNotification) -> None:
        try:
            self._queue.put_nowait(notification)
        except asyncio.QueueFull:
            logger.warning(
                "notification_dropped_queue_full",
                notification_event=notification.event.value,
                appointment_id=str(notification.appointment.id),
            )

    async def _run(self) -> None:
        while True:
            notification = await self._queue.get()
            try:
                await self.deliver(notification)
            finally:
                self._queue.task_done()

    async def deliver(self, notification: AppointmentNotification) -> bool:
        """
        Deliver one notification with retries.

        Returns:
            True if delivered or intentionally skipped, False if every attempt failed
        """
        for attempt in range(1, self.max_retries + 1):
            try:
                sent = await self.sender.send(notification)
            except Exception as e:
                logger.warning(
                    "notification_attempt_failed",
                    notification_event=notification.event.value,
                    appointment_id=str(notification.appointment.id),
                    attempt=attempt,
                    error=str(e),
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_backoff_seconds * 2 ** (attempt - 1))
                continue

            if sent:
                logger.info(
                    "notification_sent",
                    notification_event=notification.event.value,
                    appointment_id=str(notification.appointment.id),
                )
            return True

        logger.error(
            "notification_failed",
            notification_event=notification.event.value,
            appointment_id=str(notification.appointment.id),
            attempts=self.max_retries,
        )
        return False


notification_dispatcher = NotificationDispatcher(
    EmailSender(settings),
    queue_size=settings.notification_queue_size,
    max_retries=settings.notification_max_retries,
    retry_backoff_seconds=settings.notification_retry_backoff_seconds,
)


def get_notifier() -> Notifier:
    """Dependency returning the process-wide notification dispatcher."""
    return notification_dispatcher
