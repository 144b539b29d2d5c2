"""Helpers for reading and writing ledger values through the stub."""

from typing import TYPE_CHECKING, TypeVar

from ..schemas import LedgerBaseModel
from .errors import ValidationError

if TYPE_CHECKING:
    from ..ledger.stub import ChaincodeStub

ModelT = TypeVar("ModelT", bound=LedgerBaseModel)


def require_id(value: str, field: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field} must not be empty")
    return value


def entity_key(stub: "ChaincodeStub", object_type: str, entity_id: str) -> str:
    try:
        return stub.create_composite_key(object_type, [entity_id])
    except ValueError as e:
        raise ValidationError(str(e))


async def read_model(
    stub: "ChaincodeStub",
    key: str,
    model: type[ModelT],
) -> ModelT | None:
    data = await stub.get_state(key)
    if data is None:
        return None
    return model.from_bytes(data)


async def write_model(stub: "ChaincodeStub", key: str, value: LedgerBaseModel) -> None:
    await stub.put_state(key, value.to_bytes())
