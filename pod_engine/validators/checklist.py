from pod_engine.validators.base import BaseValidator


class ChecklistValidator(BaseValidator):
    """Default validator: the five sections exactly as the rule set configures them."""

    name = "checklist"
