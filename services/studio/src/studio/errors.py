"""Studio-side errors (generation failures use shared.errors)."""


class StudioError(Exception):
    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConversationNotFoundError(StudioError):
    status_code = 404


class EntryNotFoundError(StudioError):
    status_code = 404


class ConversationBusyError(StudioError):
    """A reply is still streaming in this conversation."""

    status_code = 409


class InvalidRetryError(StudioError):
    status_code = 409


class WizardStepError(StudioError):
    """Wizard action issued out of order or with missing input."""

    status_code = 409


class WizardNotFoundError(StudioError):
    status_code = 404
