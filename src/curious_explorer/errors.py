"""
Exploration error kinds.

Fatal kinds (identification, analysis, offline) abort a pipeline run and end
up as the session's `error` status. The rest are absorbed where they occur
and only printed; they exist so adapters and tests can name the condition.
"""


class ExplorationError(Exception):
    """Base class for every failure the explorer reports."""

    message = "Exploration failed. System Error."
    fatal = True

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class IdentificationFailed(ExplorationError):
    message = "Failed to identify object from image."


class AnalysisFailed(ExplorationError):
    message = "Failed to analyze object structure."


class SynthesisUnavailable(ExplorationError):
    message = "Image generation unavailable."
    fatal = False


class ScanUnavailable(ExplorationError):
    message = "Visual analysis unavailable."
    fatal = False


class OfflineBlocked(ExplorationError):
    message = "Offline Mode: Cannot generate new explorations."


class PersistenceFailed(ExplorationError):
    message = "Failed to write explorations to storage."
    fatal = False


class ImportMalformed(ExplorationError):
    message = "Invalid file format: Root must be an array of explorations."
