"""Error taxonomy for the extraction pipeline.

Only ``InvalidURL`` and the boundary errors ever shape what a caller sees;
``StrategyFailure`` is raised and recovered inside a single strategy.
"""


class ExtractionError(Exception):
    """Base class for tokkit errors."""


class InvalidURL(ExtractionError, ValueError):
    """No content identifier could be derived from the URL."""


class StrategyFailure(ExtractionError):
    def __init__(self, strategy: str, cause: object = None):
        self.strategy = strategy
        self.cause = cause
        super().__init__(f"{strategy}: {cause}" if cause else strategy)


class AllStrategiesExhausted(ExtractionError):
    def __init__(self, failed: list[str]):
        self.failed = failed
        super().__init__(f"all strategies failed: {', '.join(failed) or 'none attempted'}")


class UnexpectedFailure(ExtractionError):
    """Wraps any exception escaping the pipeline outside a strategy."""
