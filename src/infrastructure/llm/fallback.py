"""
Credential fallback.

Runs one call against an ordered list of credentials, moving on when a
call raises or returns an unsuccessful result.
"""
import logging
from typing import Callable, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _credential_label(index: int) -> str:
    return "primary" if index == 0 else f"fallback #{index}"


def call_with_fallback(
    credentials: Sequence[str],
    call: Callable[[str], T],
    succeeded: Callable[[T], bool] = lambda result: result is not None,
    operation: str = "call",
) -> Optional[T]:
    """
    Try `call` with each credential in order.

    Args:
        credentials: Credentials, primary first.
        call: Performs the request with one credential.
        succeeded: Decides whether a returned result is usable.
        operation: Name used in log lines.

    Returns:
        The first successful result, or None when every credential failed.
        Never raises.
    """
    for index, credential in enumerate(credentials):
        label = _credential_label(index)
        try:
            result = call(credential)
        except Exception as e:
            logger.warning(f"{operation} failed with {label} credential: {e}")
            continue
        if succeeded(result):
            if index > 0:
                logger.info(f"{operation} succeeded with {label} credential")
            return result
        logger.warning(f"{operation} returned an unusable result with {label} credential")

    if credentials:
        logger.error(f"{operation} failed with all {len(credentials)} credential(s)")
    return None
