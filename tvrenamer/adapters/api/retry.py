"""
Relance des requetes HTTP vers le fournisseur de metadonnees.

Sont relancees : les limites de requetes (429), les indisponibilites
passageres (502, 503, 504) et les erreurs de transport (connexion,
timeout). Le delai suit l'en-tete Retry-After quand le fournisseur le
donne, sinon un backoff exponentiel avec jitter (tenacity). Les autres
erreurs HTTP sont propagees sans relance.
"""

from typing import Optional

import httpx
from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_random_exponential,
)

TRANSIENT_STATUS_CODES: frozenset[int] = frozenset({502, 503, 504})


class RateLimitError(Exception):
    """
    L'API a retourne 429 Too Many Requests.

    Attributes:
        retry_after: Secondes a attendre (en-tete Retry-After), ou None.
    """

    def __init__(self, retry_after: Optional[int] = None) -> None:
        self.retry_after = retry_after
        super().__init__(f"Limite de requetes atteinte. Relance dans: {retry_after}s")


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return max(int(value), 0)
    except ValueError:
        return None


def is_transient(error: BaseException) -> bool:
    """Indique si une erreur de requete merite une nouvelle tentative."""
    if isinstance(error, (RateLimitError, httpx.TransportError)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code in TRANSIENT_STATUS_CODES
    return False


class _WaitRetryAfter:
    """Delai impose par Retry-After (borne par max_wait), sinon backoff."""

    def __init__(self, max_wait: float) -> None:
        self._max_wait = max_wait
        self._backoff = wait_random_exponential(multiplier=1, min=min(1, max_wait), max=max_wait)

    def __call__(self, retry_state: RetryCallState) -> float:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return min(error.retry_after, self._max_wait)
        return self._backoff(retry_state)


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.debug(
        f"Nouvelle tentative {retry_state.attempt_number + 1} apres: "
        f"{error or 'erreur inconnue'}"
    )


async def request_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    max_attempts: int = 5,
    max_wait: float = 60,
    **kwargs,
) -> httpx.Response:
    """
    Execute une requete HTTP, relancee sur les erreurs passageres.

    Args:
        client: Client httpx (base_url deja configuree le cas echeant)
        method: Methode HTTP
        url: URL ou chemin relatif
        max_attempts: Nombre maximum de tentatives (1 = aucune relance)
        max_wait: Delai maximum entre deux tentatives (secondes)

    Raises:
        RateLimitError: Si 429 apres epuisement des tentatives
        httpx.HTTPStatusError: Pour les autres erreurs HTTP
        httpx.TransportError: Si le fournisseur reste injoignable
    """
    retrying = AsyncRetrying(
        retry=retry_if_exception(is_transient),
        wait=_WaitRetryAfter(max_wait),
        stop=stop_after_attempt(max_attempts),
        before_sleep=_log_retry,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            response = await client.request(method, url, **kwargs)
            if response.status_code == 429:
                raise RateLimitError(_parse_retry_after(response.headers.get("Retry-After")))
            response.raise_for_status()
    return response
