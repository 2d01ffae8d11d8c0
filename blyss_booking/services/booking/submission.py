"""
Booking submission: readiness check, authentication gate and request creation.
"""

import hashlib
import json
import sqlite3
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ...core.enums import AuthResult, PendingAction, SubmissionOutcome
from ...core.exceptions import ExternalAPIError
from ...core.models.booking import Booking, BookingItem, Cart, CreateBookingRequest
from ...core.models.user import UserProfile
from ...config import Settings, get_settings
from ...utils.date import TimeParser
from ...utils.logging import get_logger
from ...utils.text import TextProcessor
from ...utils.validation import ValidationUtils
from ..memory import BookingHistoryStore
from ..session import SessionService
from .coordinator import SchedulingCoordinator

logger = get_logger("blyss.submission")

Callback = Callable[[], None]


@dataclass
class SubmissionResult:
    outcome: SubmissionOutcome
    booking: Optional[Booking] = None
    errors: List[str] = field(default_factory=list)
    error: Optional[str] = None


class SubmissionFlow:
    """
    Turns a complete cart into a booking.

    When the customer is not signed in, the confirmation is parked on the
    session as a pending action and the login collaborator is presented. The
    host reports the login outcome through handle_auth_result(), which
    resumes or abandons the submission.
    """

    def __init__(
        self,
        coordinator: SchedulingCoordinator,
        session: SessionService,
        history: Optional[BookingHistoryStore] = None,
        present_login: Optional[Callback] = None,
        on_reset_ui: Optional[Callback] = None,
        on_complete: Optional[Callable[[Optional[Booking]], None]] = None,
        notes: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        self.coordinator = coordinator
        self.session = session
        self.history = history
        self.present_login = present_login
        self.on_reset_ui = on_reset_ui
        self.on_complete = on_complete
        self.notes = notes
        self.default_language = (settings or get_settings()).default_language

        self.is_submitting = False
        self.error: Optional[str] = None

    @property
    def cart(self) -> Cart:
        return self.coordinator.cart

    async def confirm(self) -> SubmissionResult:
        """Handle the user's confirm action."""
        errors = ValidationUtils.validate_cart(self.cart)
        if errors:
            return SubmissionResult(SubmissionOutcome.NOT_READY, errors=errors)

        if self.is_submitting:
            return SubmissionResult(SubmissionOutcome.IN_PROGRESS)

        if not self.session.is_authenticated():
            if self.session.remember(PendingAction.CONFIRM_BOOKING):
                logger.info("submission: login required, confirmation deferred")
                if self.present_login is not None:
                    self.present_login()
            return SubmissionResult(SubmissionOutcome.AUTH_REQUIRED)

        return await self._submit()

    async def handle_auth_result(self, result: AuthResult) -> SubmissionResult:
        """Resume or drop the submission parked before login."""
        action = self.session.take_pending_action()
        if action is None:
            return SubmissionResult(SubmissionOutcome.NOTHING_PENDING)

        if result != AuthResult.SUCCESS:
            logger.info("submission: login dismissed, pending confirmation dropped")
            return SubmissionResult(SubmissionOutcome.ABANDONED)

        if action != PendingAction.CONFIRM_BOOKING:
            return SubmissionResult(SubmissionOutcome.NOTHING_PENDING)

        if not self.session.is_authenticated():
            # Credentials not stored yet; keep the action pending
            self.session.remember(action)
            logger.warning("submission: login reported without credentials")
            return SubmissionResult(SubmissionOutcome.AUTH_REQUIRED)

        return await self._submit()

    async def cancel(self) -> None:
        """Abandon the flow and discard the cart."""
        self.session.take_pending_action()
        self.error = None
        await self.coordinator.cancel()

    def build_booking_request(self) -> CreateBookingRequest:
        cart = self.cart
        profile = self.session.profile or UserProfile()
        language = (
            self.session.profile.language.value
            if self.session.profile is not None
            else self.default_language
        )

        items = []
        for selection in cart.selected_services:
            employee = selection.selected_employee
            items.append(
                BookingItem(
                    service_id=selection.id,
                    service_name=TextProcessor.to_multilingual(selection.name, language),
                    employee_id=employee.id,
                    employee_name=employee.full_name,
                    start_time=TimeParser.combine(cart.selected_date, selection.selected_time),
                    price=employee.service_price,
                    duration_minutes=employee.service_duration_minutes,
                )
            )

        return CreateBookingRequest(
            business_id=cart.salon_id,
            customer_name=profile.display_name,
            customer_phone=profile.phone_number or "",
            customer_telegram_id=profile.telegram_id,
            booking_date=cart.selected_date,
            notes=self.notes,
            items=items,
        )

    @staticmethod
    def build_idempotency_key(request: CreateBookingRequest) -> str:
        raw = {
            "salon": request.business_id,
            "date": request.booking_date,
            "items": sorted(
                (item.service_id, item.employee_id, item.start_time)
                for item in request.items
            ),
        }
        return hashlib.sha256(
            json.dumps(raw, ensure_ascii=False, sort_keys=True).encode("utf-8")
        ).hexdigest()

    async def _submit(self) -> SubmissionResult:
        errors = ValidationUtils.validate_cart(self.cart)
        if errors:
            return SubmissionResult(SubmissionOutcome.NOT_READY, errors=errors)
        if self.is_submitting:
            return SubmissionResult(SubmissionOutcome.IN_PROGRESS)

        cart = self.cart
        request = self.build_booking_request()
        self.is_submitting = True
        self.error = None
        try:
            confirmation = await self.coordinator.external_api.create_booking(
                cart.salon_id,
                request,
                idempotency_key=self.build_idempotency_key(request),
            )
        except ExternalAPIError as e:
            logger.error("submission: booking for salon %s failed: %s", cart.salon_id, e)
            self.error = str(e) or "Booking failed"
            return SubmissionResult(SubmissionOutcome.FAILED, error=self.error)
        finally:
            self.is_submitting = False

        logger.info(
            "submission: booking %s created for salon %s", confirmation.id, cart.salon_id
        )
        booking = None
        if self.history is not None:
            try:
                booking = await self.history.add_booking(
                    salon_id=cart.salon_id,
                    salon_name=cart.salon_name,
                    services=cart.selected_services,
                    date=cart.selected_date,
                    time=cart.selected_services[0].selected_time,
                    remote_id=confirmation.id,
                )
            except sqlite3.Error as e:
                # The booking exists remotely; the cart must still be cleared
                logger.error(
                    "submission: could not record booking %s in history: %s",
                    confirmation.id,
                    e,
                )

        await self.coordinator.clear()
        if self.on_reset_ui is not None:
            self.on_reset_ui()
        if self.on_complete is not None:
            self.on_complete(booking)
        return SubmissionResult(SubmissionOutcome.SUBMITTED, booking=booking)
