"""
Built-in per-step validation rules.

Each validator returns ``True`` on success or a user-facing message on
failure. Failures are values, never exceptions: they only block navigation.
"""

from typing import Optional, Sequence

from alertwizard.models import AlertFormData, RecipientCategory, ValidationResult


# Built-in step indices
MESSAGE_STEP = 0
RECIPIENTS_STEP = 1
DATE_STEP = 2
PREVIEW_STEP = 3
BUILTIN_STEP_COUNT = 4

TITLE_REQUIRED = "Título é obrigatório"
MESSAGE_REQUIRED = "Mensagem é obrigatória"
NO_CATEGORIES = "Nenhuma categoria configurada"
SELECT_RECIPIENTS = "Selecione destinatários"
DATE_REQUIRED = "Data é obrigatória"
ALREADY_ON_LAST_STEP = "Já está no último step"
INVALID_STEP = "Etapa inválida"


def _is_blank(value: Optional[str]) -> bool:
    return not (value or "").strip()


def validate_message_step(form: AlertFormData) -> ValidationResult:
    """Title and message must both contain non-whitespace text."""
    if _is_blank(form.title):
        return TITLE_REQUIRED
    if _is_blank(form.message):
        return MESSAGE_REQUIRED
    return True


def validate_recipients_step(categories: Sequence[RecipientCategory]) -> ValidationResult:
    """Only the last category of the configured order gates advancement.

    Earlier categories may be left empty.
    """
    if not categories:
        return NO_CATEGORIES
    if not categories[-1].selected_ids:
        return SELECT_RECIPIENTS
    return True


def validate_date_step(form: AlertFormData) -> ValidationResult:
    if form.send_today:
        return True
    if not form.date:
        return DATE_REQUIRED
    return True


def validate_step(
    index: int,
    form: AlertFormData,
    categories: Sequence[RecipientCategory],
    steps: Optional[Sequence] = None,
) -> ValidationResult:
    """
    Run the validator that applies to step ``index``.

    Args:
        index: Step index
        form: Form data (with a categories snapshot)
        categories: Categories in configured order (for the recipients rule)
        steps: Registered steps; a step with its own ``validate`` is authoritative

    Returns:
        True or an error message
    """
    step = steps[index] if steps is not None and 0 <= index < len(steps) else None
    custom = getattr(step, 'validate', None)
    if custom is not None:
        return custom(form)

    if index == MESSAGE_STEP:
        return validate_message_step(form)
    if index == RECIPIENTS_STEP:
        return validate_recipients_step(categories)
    if index == DATE_STEP:
        return validate_date_step(form)
    # Preview and anything past the built-in steps
    return True


def can_finish(form: AlertFormData, categories: Sequence[RecipientCategory]) -> bool:
    """Message, recipients and date rules all pass, wherever the wizard currently is."""
    return first_finish_error(form, categories) is None


def first_finish_error(form: AlertFormData, categories: Sequence[RecipientCategory]) -> Optional[str]:
    """Message of the first built-in rule blocking finish, or None."""
    for result in (
        validate_message_step(form),
        validate_recipients_step(categories),
        validate_date_step(form),
    ):
        if result is not True:
            return result if isinstance(result, str) else INVALID_STEP
    return None
