"""Classified failures raised by the alert pipeline."""


class AlertPipelineError(Exception):
    """Base class for every classified pipeline outcome."""


class TransportFailure(AlertPipelineError):
    """Feed, store or messaging call rejected or returned non-success."""


class EmptyFeed(AlertPipelineError):
    """Feed responded with zero bytes or whitespace only."""


class NoUsableRows(AlertPipelineError):
    """Feed parsed but no row satisfied the required fields."""


class NoValidDates(AlertPipelineError):
    """Rows were present but none yielded a canonical day key."""


class SubscriptionFailure(AlertPipelineError):
    """Topic subscription rejected by the messaging transport."""


class WriteFailure(AlertPipelineError):
    """Feedback write rejected by the document store."""


class SubscriptionClosedError(AlertPipelineError):
    """Teardown invoked on a subscription that is already closed."""
