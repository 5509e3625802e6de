#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import logging
from typing import Final

from ..identity import AWSCredentialsIdentity
from ..interfaces import CredentialsResolver

logger: Final = logging.getLogger(__name__)


class MemoizingCredentialsResolver(CredentialsResolver):
    """Wraps a resolver and reuses its credentials until they expire.

    Credentials without an expiration are returned forever once resolved, without
    ever invoking the wrapped resolver again. Credentials with an expiration are
    reused until they expire, at which point exactly one refresh is started.

    Concurrent callers share a single in-flight resolution: a caller arriving while
    a resolution is pending awaits that same resolution instead of starting another.
    A failed resolution is not retained, so the next call tries again.
    """

    def __init__(self, resolver: CredentialsResolver) -> None:
        self._resolver = resolver
        self._result: asyncio.Task[AWSCredentialsIdentity] | None = None
        self._is_constant = False

    async def get_identity(self) -> AWSCredentialsIdentity:
        if self._is_constant and self._result is not None:
            return self._result.result()

        if self._result is None:
            self._result = self._start()

        credentials = await self._await(self._result)

        if credentials.expiration is None:
            self._is_constant = True
            return credentials

        if not credentials.is_expired:
            return credentials

        logger.debug("Memoized credentials from %s expired.", credentials.source_name)
        return await self._refresh(stale=credentials)

    async def _refresh(
        self, *, stale: AWSCredentialsIdentity
    ) -> AWSCredentialsIdentity:
        # Only the first caller to observe the stale result replaces it. Anyone else
        # attaches to the replacement.
        current = self._result
        if current is None or (current.done() and _settled_value(current) is stale):
            current = self._result = self._start()
        return await self._await(current)

    def _start(self) -> asyncio.Task[AWSCredentialsIdentity]:
        logger.debug("Resolving credentials from %s.", type(self._resolver).__name__)
        return asyncio.create_task(self._resolver.get_identity())

    async def _await(
        self, task: asyncio.Task[AWSCredentialsIdentity]
    ) -> AWSCredentialsIdentity:
        try:
            # Shielded so one caller being cancelled doesn't cancel the shared task.
            return await asyncio.shield(task)
        except Exception:
            if self._result is task:
                self._result = None
            raise


def _settled_value(
    task: asyncio.Task[AWSCredentialsIdentity],
) -> AWSCredentialsIdentity | None:
    if task.cancelled() or task.exception() is not None:
        return None
    return task.result()
