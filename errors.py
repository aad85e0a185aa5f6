"""Exception hierarchy for transaction encoding, signing and validation."""

from typing import Dict, Optional


class TxError(Exception):
    """
    Base exception for every error raised while building, decoding, signing
    or validating a transaction.

    Attributes:
        message (str): Human-readable error description.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class InvalidField(TxError, ValueError):
    """
    Raised when a single field has the wrong shape, type or range.

    Attributes:
        field (str): The name of the offending field.
        reason (str): Why the value was rejected.
    """

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid field {field!r}: {reason}")


class InvalidLength(TxError):
    """
    Raised when a positional field list or a serialized envelope has a length
    that no transaction type accepts.

    Attributes:
        length (int): The length that was received.
    """

    def __init__(self, length: int, detail: Optional[str] = None):
        self.length = length
        super().__init__(detail or f"No transaction type has {length} fields")


class TypeMismatch(TxError):
    """
    Raised when an explicit type hint disagrees with the type implied by the
    fields.

    Attributes:
        expected (str): The type requested by the caller.
        actual (str): The type (or set of types) the fields allow.
    """

    def __init__(self, expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Transaction type {expected!r} does not match fields (allowed: {actual})")


class ChainMismatch(TxError):
    """
    Raised when the symbolic chain and the numeric chain id resolve to
    different networks.

    Attributes:
        label_chain_id (int): The id behind the chain label.
        chain_id (int): The explicit (or encoded) chain id.
    """

    def __init__(self, label_chain_id: int, chain_id: int):
        self.label_chain_id = label_chain_id
        self.chain_id = chain_id
        super().__init__(f"Chain label resolves to chainId={label_chain_id}, but chainId={chain_id} was given")


class DecodeError(TxError):
    """Raised when serialized transaction bytes cannot be decoded."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Failed to decode transaction: {detail}")


class AlreadySigned(TxError):
    """Raised when signing a transaction that already carries a signature."""

    def __init__(self):
        super().__init__("Expected unsigned transaction")


class NotSigned(TxError):
    """Raised when a signature-dependent operation runs on an unsigned transaction."""

    def __init__(self, detail: str = "Expected signed transaction"):
        super().__init__(detail)


class InvalidSignature(TxError):
    """Raised for a malformed or non-canonical signature."""


class RecoveryFailed(TxError):
    """Raised when no public key can be recovered from a signed transaction."""


class TransactionFieldError(TxError):
    """
    Aggregate of the per-field failures found by the validation pipeline.

    Attributes:
        field_errors (dict): Mapping of field name to the reason it was rejected.
    """

    def __init__(self, field_errors: Dict[str, str], message: str = "Invalid transaction"):
        self.field_errors = dict(field_errors)
        details = ", ".join(f"{field}: {reason}" for field, reason in self.field_errors.items())
        super().__init__(f"{message}. {details}")
