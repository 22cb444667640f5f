import logging
import os
from typing import Optional, Sequence

from .errors import AllStrategiesExhausted, InvalidURL, UnexpectedFailure
from .models import MediaRecord, Result
from .strategies import STRATEGIES, BaseStrategy
from .urls import ContentIdentifier, normalize_url, parse_url, resolve_short_link

logger = logging.getLogger("tokkit")

ENVIRONMENT = os.getenv("TOKKIT_ENV", "production").strip().lower()

INVALID_URL_MESSAGE = "Invalid URL format"
ALL_FAILED_MESSAGE = "All extraction methods failed. Video may be private, deleted, or region-blocked."
UNEXPECTED_MESSAGE = "Unknown error occurred"


def _debug_detail(exc: BaseException) -> Optional[str]:
    return str(exc) if ENVIRONMENT == "development" else None


def _run_strategies(url: str, ident: ContentIdentifier,
                    strategies: Sequence[BaseStrategy]) -> MediaRecord:
    """Try each strategy in order; first success wins.

    A pending short-link identifier is resolved at most once, and only when a
    strategy that needs a numeric ID is reached. If an earlier strategy already
    followed the short link, its landing URL is reused instead of a new request.
    """
    failed = []
    landings: dict[str, str] = {}
    resolved: Optional[ContentIdentifier] = None if ident.pending else ident
    tried_resolve = not ident.pending

    for strategy in strategies:
        if strategy.needs_id:
            if not tried_resolve:
                tried_resolve = True
                resolved = resolve_short_link(url, landing=landings.get(url))
            if resolved is None:
                logger.info(f"Skipping {strategy.name}: short link could not be resolved to an ID")
                failed.append(strategy.name)
                continue
            target = resolved.value
        else:
            target = url

        logger.debug(f"Trying strategy {strategy.name} with {target}")
        record = strategy.attempt(target, landings)
        if record is not None:
            logger.info(f"Extracted {record.id or target} via {strategy.name}")
            return record
        failed.append(strategy.name)

    raise AllStrategiesExhausted(failed)


def extract(url: str, strategies: Sequence[BaseStrategy] = STRATEGIES) -> Result:
    """统一提取入口: URL -> Result envelope. Never raises."""
    try:
        try:
            ident = parse_url(url)
        except InvalidURL as e:
            logger.info(f"Rejected URL: {e}")
            return Result.failure(INVALID_URL_MESSAGE)
        record = _run_strategies(normalize_url(url), ident, strategies)
        return Result.success(record)
    except AllStrategiesExhausted as e:
        logger.warning(f"{url}: {e}")
        return Result.failure(ALL_FAILED_MESSAGE)
    except Exception as e:
        err = UnexpectedFailure(f"{type(e).__name__}: {e}")
        logger.exception(f"Unexpected failure extracting {url}: {err}")
        return Result.failure(UNEXPECTED_MESSAGE, error=_debug_detail(err))
