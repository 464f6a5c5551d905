"""
Redis implementation of Bayes storage interface, dood!

Every procedure is a Lua script registered with the Redis client. Scripts are
invoked with EVALSHA and transparently re-loaded by redis-py on NOSCRIPT, so
each public classifier call costs one round trip and runs atomically inside
the server.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Union

import redis.asyncio as redis
from redis.exceptions import ResponseError

from .exceptions import StorageProcedureError
from .lua_scripts import SCRIPTS
from .models import COUNT_OUT_OF_RANGE
from .storage_interface import BayesStorageInterface, labelsKey, tallyKey, tokenTableKey

logger = logging.getLogger(__name__)

# Characters with special meaning in SCAN MATCH patterns
_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def decodeValue(value: Union[bytes, str]) -> str:
    """Decode a reply value, clients may or may not have decode_responses set"""
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value


class RedisBayesStorage(BayesStorageInterface):
    """
    Redis implementation of Bayes storage interface

    Key layout under a namespace:
    - <namespace>labels              set of active labels
    - <namespace><label>             hash token => count
    - <namespace>tally_for:<label>   sum of the hash values
    """

    def __init__(self, client: redis.Redis):
        """
        Initialize Redis storage

        Args:
            client: redis.asyncio.Redis instance
        """
        self.client = client
        self.scripts = {name: client.register_script(source) for name, source in SCRIPTS.items()}
        logger.info(f"Initialized RedisBayesStorage with scripts: {', '.join(self.scripts)}")

    async def _runScript(self, name: str, namespace: str, argv: Sequence[Any]) -> Any:
        """
        Run a registered procedure against the label set of a namespace

        Raises:
            StorageProcedureError: If the procedure is unknown or refused out of range counts
        """
        script = self.scripts.get(name)
        if script is None:
            raise StorageProcedureError(f"Unknown procedure: '{name}'")

        logger.debug(f"Running '{name}' procedure in namespace '{namespace}' with {len(argv)} arguments")
        try:
            return await script(keys=[labelsKey(namespace)], args=[namespace, *argv])
        except ResponseError as e:
            if COUNT_OUT_OF_RANGE not in str(e):
                raise
            logger.warning(f"Procedure '{name}' refused in namespace '{namespace}': {e}")
            raise StorageProcedureError(str(e)) from e

    async def flush(self, namespace: str) -> int:
        """Delete all labels of the namespace"""
        return int(await self._runScript("flush", namespace, []))

    async def train(self, namespace: str, argv: Sequence[Any]) -> int:
        """Add token counts to a label"""
        return int(await self._runScript("train", namespace, argv))

    async def untrain(self, namespace: str, argv: Sequence[Any]) -> int:
        """Remove token counts from a label"""
        return int(await self._runScript("untrain", namespace, argv))

    async def scores(self, namespace: str, argv: Sequence[Any]) -> List[Any]:
        """Score every active label"""
        reply = await self._runScript("scores", namespace, argv)
        return [decodeValue(value) for value in reply or []]

    async def classify(self, namespace: str, argv: Sequence[Any]) -> Optional[Any]:
        """Get the best label"""
        reply = await self._runScript("classify", namespace, argv)
        if reply is None:
            return None
        return decodeValue(reply)

    async def getLabels(self, namespace: str) -> List[str]:
        """Get members of the label set"""
        members = await self.client.smembers(labelsKey(namespace))
        return sorted(decodeValue(member) for member in members)

    async def getTokenCounts(self, namespace: str, label: str) -> Dict[str, int]:
        """Get the token table of a label"""
        table = await self.client.hgetall(tokenTableKey(namespace, label))
        return {decodeValue(token): int(count) for token, count in table.items()}

    async def getTally(self, namespace: str, label: str) -> int:
        """Get the tally of a label"""
        value = await self.client.get(tallyKey(namespace, label))
        return int(value) if value is not None else 0

    async def purge(self, namespace: str) -> int:
        """Delete every key starting with the namespace"""
        pattern = _GLOB_SPECIAL.sub(r"\\\1", namespace) + "*"
        keys = [key async for key in self.client.scan_iter(match=pattern, count=500)]
        if not keys:
            return 0

        deleted = 0
        for start in range(0, len(keys), 500):
            deleted += await self.client.delete(*keys[start : start + 500])
        logger.info(f"Purged {deleted} keys matching '{pattern}'")
        return deleted

    async def close(self) -> None:
        """Close the underlying Redis connection pool"""
        await self.client.aclose()
