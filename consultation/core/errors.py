"""Exceptions raised by the consultation core."""


class ConsultationError(Exception):
    """Base class for every error raised by the simulator."""


class OperationCancelled(ConsultationError):
    """A sleep or token acquisition was interrupted by the cancellation signal.

    Not a failure: the task unwinds cleanly, releasing whatever it already holds.
    """


class LawyerUnavailableError(ConsultationError):
    """A token was granted but no lawyer of the matching kind could be claimed."""


class TokenReleaseError(ConsultationError):
    """A permit was returned that was never acquired (double release)."""


class LawyerStateError(ConsultationError):
    """A lawyer's busy flag was set to the value it already had."""


class DuplicateClientError(ConsultationError):
    """A client was enqueued while already waiting."""


class ClientNotQueuedError(ConsultationError):
    """A client was removed from the waiting line without being in it."""


class SimulationStateError(ConsultationError):
    """A lifecycle call was made in a state that does not allow it."""


class SinkFailure(ConsultationError):
    """Writing to the log sink failed."""


class ConfigError(ConsultationError):
    """The simulation configuration is invalid."""
