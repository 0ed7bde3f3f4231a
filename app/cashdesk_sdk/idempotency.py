from __future__ import annotations

import uuid
from dataclasses import dataclass

IDEMPOTENCY_HEADER = "Idempotency-Key"


@dataclass(frozen=True)
class ActionKeys:
    """Identity of one cashier action.

    ``transaction_id`` travels in the body and is stored on the ledger row;
    ``idempotency_key`` travels in the header. Resending an action with the
    same pair replays the stored response instead of recording twice.
    """

    transaction_id: str
    idempotency_key: str

    @classmethod
    def generate(cls) -> ActionKeys:
        return cls(transaction_id=str(uuid.uuid4()), idempotency_key=str(uuid.uuid4()))

    @classmethod
    def resolve(cls, transaction_id: str | None = None, idempotency_key: str | None = None) -> ActionKeys:
        if transaction_id and idempotency_key:
            return cls(transaction_id=transaction_id, idempotency_key=idempotency_key)
        generated = cls.generate()
        return cls(
            transaction_id=transaction_id or generated.transaction_id,
            idempotency_key=idempotency_key or generated.idempotency_key,
        )

    def headers(self) -> dict[str, str]:
        return {IDEMPOTENCY_HEADER: self.idempotency_key}
