"""
Chaincode router: maps transaction names to typed handlers.

A route declares one parser per positional argument. The router checks the
argument count, parses every argument before the handler runs and encodes
whatever the handler returns. Handlers never see raw strings.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Sequence
import logging

from .codec import encode_result
from .errors import ValidationError

if TYPE_CHECKING:
    from ..ledger.stub import ChaincodeStub

logger = logging.getLogger(__name__)

ArgParser = Callable[[str], Any]
Handler = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class TransactionRoute:
    name: str
    handler: Handler
    params: tuple[ArgParser, ...] = ()


class Chaincode:
    """A deployable set of named transactions."""

    def __init__(self, name: str):
        self.name = name
        self._routes: dict[str, TransactionRoute] = {}

    def add_route(
        self,
        name: str,
        handler: Handler,
        *params: ArgParser,
    ) -> None:
        if name in self._routes:
            raise ValueError(f"transaction {name} is already registered on {self.name}")
        self._routes[name] = TransactionRoute(name, handler, tuple(params))

    @property
    def transactions(self) -> list[str]:
        return sorted(self._routes)

    async def invoke(self, stub: "ChaincodeStub", function: str, args: Sequence[str]) -> bytes:
        """Run a transaction and return its encoded response payload."""
        route = self._routes.get(function)
        if route is None:
            raise ValidationError(f"function {function} not found in chaincode {self.name}")

        if len(args) != len(route.params):
            raise ValidationError(
                f"{function} expects {len(route.params)} argument(s), got {len(args)}"
            )

        parsed = [parse(arg) for parse, arg in zip(route.params, args)]
        logger.debug(f"{self.name}.{function} invoked by {stub.get_creator_msp_id()}")
        result = await route.handler(stub, *parsed)
        return encode_result(result)
