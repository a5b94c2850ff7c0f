"""Model fallback across the roster.

Candidates are tried strictly in rank order, one call at a time. Only HTTP 429
moves on to the next model; any other failure is assumed to be independent of
the model (bad request, bad key, network down) and ends the run immediately.
"""

import logging

from doclink.inference.errors import AllModelsRateLimitedError, TransportFailureError
from doclink.inference.request_builder import GenerateRequest
from doclink.inference.roster import ModelRoster
from doclink.inference.transport import Transport
from doclink.models.domain import OutcomeStatus, RequestOutcome

logger = logging.getLogger(__name__)


class FallbackOrchestrator:
    """Runs one logical request against a roster until a model accepts it.

    Holds no per-request state, so one instance serves every request.
    """

    def __init__(self, roster: ModelRoster, transport: Transport) -> None:
        self._roster = roster
        self._transport = transport

    @property
    def roster(self) -> ModelRoster:
        return self._roster

    async def run(self, request: GenerateRequest, streaming: bool) -> RequestOutcome:
        """Send ``request`` to each candidate in turn.

        Args:
            request: Built request, reused unchanged for every attempt.
            streaming: Whether to open a byte stream.

        Returns:
            The first ok outcome.

        Raises:
            AllModelsRateLimitedError: Every candidate answered 429.
            TransportFailureError: A candidate failed with anything other than 429.
        """
        attempted: list[str] = []

        for candidate in self._roster:
            if candidate.rank == 0:
                logger.info(f"PRIMARY -> trying {candidate.identifier}")
            else:
                logger.info(f"FALLBACK #{candidate.rank} -> trying {candidate.identifier}")

            outcome = await self._transport.send(candidate, request, streaming)
            attempted.append(candidate.identifier)

            if outcome.status is OutcomeStatus.OK:
                logger.info(
                    f"SUCCESS -> model {candidate.identifier} (status {outcome.status_code})"
                )
                return outcome

            if outcome.status is OutcomeStatus.RATE_LIMITED:
                logger.warning(f"Rate limited (429) -> model {candidate.identifier}")
                if not self._roster.is_last(candidate):
                    continue
                logger.error(f"All models exhausted: {', '.join(attempted)}")
                raise AllModelsRateLimitedError(attempted=attempted)

            logger.error(
                f"FAILED -> model {candidate.identifier} "
                f"(status {outcome.status_code}): {outcome.error_text}"
            )
            raise TransportFailureError(
                f"Model {candidate.identifier} failed: {outcome.error_text}",
                upstream_text=outcome.error_text,
                status_code=outcome.status_code,
                model=candidate.identifier,
            )

        # ModelRoster is never empty, so the loop always returns or raises.
        raise AssertionError("unreachable: empty model roster")
