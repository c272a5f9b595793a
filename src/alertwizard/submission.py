"""
Submission assembly: flatten the wizard into an immutable AlertPayload and hand
it to the external submit collaborator.

Only ``selected_ids`` and ``all_selected`` survive per category; available
items, labels and dependency declarations are wizard-construction concerns and
are dropped from the payload.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from alertwizard.models import AlertFormData, AlertPayload, CategorySelection, RecipientCategory, SubmissionResult
from alertwizard.wizard import WizardController

logger = logging.getLogger(__name__)

SendAlert = Callable[[AlertPayload], Union[Awaitable[None], None]]


def build_payload(form: AlertFormData, categories: Mapping[str, RecipientCategory]) -> AlertPayload:
    """Copy the form fields verbatim and reduce each category to its selection."""
    return AlertPayload(
        title=form.title,
        message=form.message,
        image=form.image,
        date=form.date,
        time=form.time,
        send_today=form.send_today,
        send_copy_to_email=form.send_copy_to_email,
        recipient_categories={
            key: CategorySelection(
                selected_ids=frozenset(category.selected_ids),
                all_selected=bool(category.all_selected),
            )
            for key, category in categories.items()
        },
    )


class SubmissionAssembler:
    """Finishes a wizard: gate, mark completed, build payload, submit.

    A rejected submission leaves the wizard exactly as it was (same step, same
    data) so the user can retry.
    """

    def __init__(
        self,
        controller: WizardController,
        form_provider: Callable[[], AlertFormData],
        categories_provider: Callable[[], Mapping[str, RecipientCategory]],
        on_send_alert: Optional[SendAlert] = None,
    ):
        self.controller = controller
        self._form_provider = form_provider
        self._categories_provider = categories_provider
        self.on_send_alert = on_send_alert

    def assemble(self) -> AlertPayload:
        return build_payload(self._form_provider(), self._categories_provider())

    async def finish(self) -> SubmissionResult:
        """Submit the current form.

        Returns:
            SubmissionResult with the payload on success, or the error message
            (validation or collaborator failure) otherwise.
        """
        blocking = self.controller.finish_error()
        if blocking is not None:
            logger.warning(f"Finish blocked: {blocking}")
            return SubmissionResult(success=False, error=blocking)

        self.controller.mark_completed(self.controller.current_step_index)
        payload = self.assemble()

        if self.on_send_alert is None:
            logger.info(f"No on_send_alert configured; alert data: {payload.to_dict()}")
        else:
            try:
                result: Any = self.on_send_alert(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Error sending alert: {e}")
                return SubmissionResult(success=False, payload=payload, error=str(e) or type(e).__name__)

        logger.info(f"Alert sent: title={payload.title!r}, categories={list(payload.recipient_categories)}")
        return SubmissionResult(success=True, payload=payload)
