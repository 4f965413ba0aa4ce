"""
Ledger error taxonomy.

Every error carries a short human-readable message that the command
dispatcher sends back to the chat user as-is.
"""


class LedgerError(Exception):
    """Base class for all ledger errors."""

    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidAmount(LedgerError):
    """Amount is not a finite, non-negative number."""

    default_message = "Invalid number"

    def __init__(self, raw_value=None):
        self.raw_value = raw_value
        if raw_value is None or raw_value == "":
            message = "Invalid number: an amount is required"
        else:
            message = f"Invalid number: {raw_value!r} is not a non-negative amount"
        super().__init__(message)


class PieNotFound(LedgerError):
    default_message = "Invalid pie ID"

    def __init__(self, reference: str | None = None):
        self.reference = reference
        message = f"Invalid pie ID: {reference}" if reference else None
        super().__init__(message)


class PieAlreadySettled(LedgerError):
    def __init__(self, pie_id: str):
        self.pie_id = pie_id
        super().__init__(f"Pie {pie_id} has already been settled")


class DuplicatePie(LedgerError):
    def __init__(self, pie_id: str):
        self.pie_id = pie_id
        super().__init__(f"Pie {pie_id} already exists")


class MalformedCommand(LedgerError):
    """Command arguments could not be parsed."""

    default_message = "Malformed command"


class UnrecognizedCommand(LedgerError):
    def __init__(self, command_name: str | None = None):
        self.command_name = command_name
        super().__init__("Unrecognized command")


class GatewayFailure(LedgerError):
    """Messaging gateway call failed."""

    default_message = "Could not reach Slack"


class StoreFailure(LedgerError):
    """Persistence call failed."""

    default_message = "Could not reach the ledger database"
