"""Form validation package."""

from expense_tracker.validation.validator import FormValidator

__all__ = ["FormValidator"]
