"""
Structured Input Parser.

Decodes JSON documents into ordered sequences of catalog mutators.

Every schema is an explicit tuple of entries mapping a document key to
the function that builds its mutators. Entries are visited in schema
order, so the resulting sequence follows the schema rather than the
textual order of the document. Absent and null keys are skipped,
unknown keys are ignored, and any failure rejects the whole document.
"""

import json
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, Callable, ClassVar, Dict, FrozenSet, List, Optional, Tuple

import structlog
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)

from stellar_mc.core.mutators import (
    CATALOG,
    CreateAccount,
    MemoText,
    Mutator,
    MutatorKind,
    Payment,
    SetHomeDomain,
    SetInflationDestination,
    SetMasterWeight,
    SourceAccountDesignation,
    TrustlineChange,
)
from stellar_mc.exceptions import ParseError

logger = structlog.get_logger(__name__)


# =============================================================================
# Field validation
# =============================================================================

def _check_decimal(value: str) -> str:
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValueError("must be a decimal number written as a string")
    if not amount.is_finite() or amount < 0:
        raise ValueError("must be a non-negative decimal number")
    return value


Text = Annotated[StrictStr, Field(min_length=1)]
DecimalString = Annotated[StrictStr, AfterValidator(_check_decimal)]
Weight = Annotated[StrictInt, Field(ge=0, le=255)]

_TEXT = TypeAdapter(Text)
_WEIGHT = TypeAdapter(Weight)
_SIGNERS = TypeAdapter(List[Text])


class _Fields(BaseModel):
    """Sub-fields of one mutator; all optional so missing ones can be named."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    required: ClassVar[Tuple[str, ...]] = ()


class PaymentFields(_Fields):
    to: Optional[Text] = None
    token: Optional[Text] = None
    amount: Optional[DecimalString] = None
    issuer: Optional[Text] = None

    required: ClassVar[Tuple[str, ...]] = ("to", "token", "amount", "issuer")


class TrustFields(_Fields):
    code: Optional[Text] = None
    issuer_address: Optional[Text] = Field(default=None, alias="issuer-address")
    limit: Optional[DecimalString] = None

    required: ClassVar[Tuple[str, ...]] = ("code", "issuer_address")


class CreateAccountFields(_Fields):
    destination: Optional[Text] = None
    starting_balance: Optional[DecimalString] = Field(default=None, alias="starting-balance")

    required: ClassVar[Tuple[str, ...]] = ("destination", "starting_balance")


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _validate(validator: Callable[[Any], Any], value: Any, path: str) -> Any:
    """Run a pydantic validator, converting its first error to a ParseError."""
    try:
        return validator(value)
    except ValidationError as e:
        error = e.errors()[0]
        location = ".".join(str(part) for part in error["loc"])
        raise ParseError(_join(path, location) if location else path, error["msg"]) from None


def _fields(model, value: Any, path: str) -> _Fields:
    """Validate a mutator's sub-fields and check the required ones."""
    fields = _validate(model.model_validate, value, path)
    for name in model.required:
        if getattr(fields, name) is None:
            key = model.model_fields[name].alias or name
            raise ParseError(_join(path, key), "missing required field")
    return fields


# =============================================================================
# Mutator builders
# =============================================================================

Builder = Callable[[Any, str], List[Mutator]]


def _source_account(value: Any, path: str) -> List[Mutator]:
    return [SourceAccountDesignation(_validate(_TEXT.validate_python, value, path))]


def _memo(value: Any, path: str) -> List[Mutator]:
    return [MemoText(_validate(_TEXT.validate_python, value, path))]


def _payment(value: Any, path: str) -> List[Mutator]:
    fields = _fields(PaymentFields, value, path)
    return [Payment(
        destination=fields.to,
        asset_code=fields.token,
        issuer=fields.issuer,
        amount=fields.amount,
    )]


def _trust(value: Any, path: str) -> List[Mutator]:
    fields = _fields(TrustFields, value, path)
    return [TrustlineChange(
        asset_code=fields.code,
        issuer=fields.issuer_address,
        limit=fields.limit,
    )]


def _create_account(value: Any, path: str) -> List[Mutator]:
    fields = _fields(CreateAccountFields, value, path)
    return [CreateAccount(
        destination=fields.destination,
        starting_balance=fields.starting_balance,
    )]


def _home_domain(value: Any, path: str) -> List[Mutator]:
    return [SetHomeDomain(_validate(_TEXT.validate_python, value, path))]


def _master_weight(value: Any, path: str) -> List[Mutator]:
    return [SetMasterWeight(_validate(_WEIGHT.validate_python, value, path))]


def _inflation_destination(value: Any, path: str) -> List[Mutator]:
    return [SetInflationDestination(_validate(_TEXT.validate_python, value, path))]


def _options(value: Any, path: str) -> List[Mutator]:
    return parse_record(value, OPTIONS_SCHEMA, path)


def _operations(value: Any, path: str) -> List[Mutator]:
    """
    Parse the operations of a transaction document.

    An object is parsed in schema order. A list of single-key objects
    keeps the order in which the operations are written.
    """
    if not isinstance(value, list):
        return parse_record(value, OPERATIONS_SCHEMA, path)

    mutators: List[Mutator] = []
    seen = set()
    for index, item in enumerate(value):
        item_path = f"{path}[{index}]"
        if not isinstance(item, dict):
            raise ParseError(item_path, "expected a JSON object")

        declared = [key for key in item if key in OPERATIONS_SCHEMA.keys and item[key] is not None]
        if not declared:
            raise ParseError(
                ParseError.UNKNOWN_OPERATION,
                f"{item_path} declares {sorted(item)}, expected one of {sorted(OPERATIONS_SCHEMA.keys)}",
            )
        if len(declared) > 1:
            raise ParseError(item_path, "each entry must declare exactly one operation")

        entry_path = _join(item_path, declared[0])
        for mutator in parse_record(item, OPERATIONS_SCHEMA, item_path):
            # Entries are parsed one by one, so multiplicity is checked across them
            if not CATALOG[mutator.kind].repeatable and mutator.kind in seen:
                field = entry_path if declared[0] == mutator.kind.value else _join(entry_path, mutator.kind.value)
                raise ParseError(field, "may appear at most once")
            seen.add(mutator.kind)
            mutators.append(mutator)
    return mutators


# =============================================================================
# Schemas
# =============================================================================

@dataclass(frozen=True)
class SchemaEntry:
    """
    One recognized document key.

    Attributes:
        key: Document key (also used to name the field in errors)
        build: Turns the key's value into mutators
        kind: Catalog kind the key yields; None for nested documents
        members: For flat documents, the top-level keys gathered into a
            single value for build; key is then only a label
        takes_list: Whether a JSON list is a single valid value
    """
    key: str
    build: Builder
    kind: Optional[MutatorKind] = None
    members: Tuple[str, ...] = ()
    takes_list: bool = False

    @property
    def repeatable(self) -> bool:
        """Whether the key may yield several mutators, as the catalog says."""
        return self.kind is not None and CATALOG[self.kind].repeatable


@dataclass(frozen=True)
class Schema:
    name: str
    entries: Tuple[SchemaEntry, ...]
    reserved: Tuple[str, ...] = ()  # Keys read outside the mutator entries

    @property
    def keys(self) -> FrozenSet[str]:
        keys = set(self.reserved)
        for entry in self.entries:
            keys.update(entry.members or (entry.key,))
        return frozenset(keys)


OPTIONS_SCHEMA = Schema("options", (
    SchemaEntry("home-domain", _home_domain, MutatorKind.HOME_DOMAIN),
    SchemaEntry("master-weight", _master_weight, MutatorKind.MASTER_WEIGHT),
    SchemaEntry("inflation-destination", _inflation_destination, MutatorKind.INFLATION_DESTINATION),
))

OPERATIONS_SCHEMA = Schema("operations", (
    SchemaEntry("payment", _payment, MutatorKind.PAYMENT),
    SchemaEntry("trust", _trust, MutatorKind.TRUSTLINE_CHANGE),
    SchemaEntry("create-account", _create_account, MutatorKind.CREATE_ACCOUNT),
    SchemaEntry("options", _options),
))

TRANSACTION_SCHEMA = Schema("transaction", (
    SchemaEntry("source-account", _source_account, MutatorKind.SOURCE_ACCOUNT),
    SchemaEntry("memo", _memo, MutatorKind.MEMO_TEXT),
    SchemaEntry("operations", _operations, takes_list=True),
), reserved=("signers",))

PAYMENT_SCHEMA = Schema("payment", (
    SchemaEntry("from", _source_account, MutatorKind.SOURCE_ACCOUNT),
    SchemaEntry("payment", _payment, MutatorKind.PAYMENT, members=("to", "token", "amount", "issuer")),
))

TRUSTLINE_SCHEMA = Schema("trustline", (
    SchemaEntry("source-account", _source_account, MutatorKind.SOURCE_ACCOUNT),
    SchemaEntry("trust", _trust, MutatorKind.TRUSTLINE_CHANGE, members=("code", "issuer-address", "limit")),
))


# =============================================================================
# Parsing
# =============================================================================

class _Repeated(list):
    """All values of a key declared more than once in one JSON object."""
    pass


def _collect_pairs(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    document: Dict[str, Any] = {}
    for key, value in pairs:
        if key not in document:
            document[key] = value
            continue
        previous = document[key]
        if not isinstance(previous, _Repeated):
            previous = _Repeated([previous])
        previous.append(value)
        document[key] = previous
    return document


def _decode(text: str) -> Any:
    try:
        return json.loads(text, object_pairs_hook=_collect_pairs)
    except json.JSONDecodeError as e:
        raise ParseError(ParseError.SYNTAX, str(e)) from None


def _occurrences(value: Any, entry: SchemaEntry, path: str) -> List[Any]:
    """Split the value of an entry into one item per mutator to build."""
    if isinstance(value, _Repeated):
        if not entry.repeatable:
            raise ParseError(path, "may appear at most once")
        items: List[Any] = []
        for occurrence in value:
            items.extend(occurrence if isinstance(occurrence, list) else [occurrence])
        return [item for item in items if item is not None]

    if isinstance(value, list):
        if entry.repeatable:
            return [item for item in value if item is not None]
        if not entry.takes_list:
            raise ParseError(path, "may appear at most once")

    return [value]


def parse_record(document: Any, schema: Schema, path: str = "") -> List[Mutator]:
    """
    Build the mutators of an already decoded document.

    Args:
        document: Decoded JSON value
        schema: Schema the document follows
        path: Location of the document inside its parent, for errors

    Returns:
        Mutators in schema order

    Raises:
        ParseError: If the document is not an object or a field is invalid
    """
    if not isinstance(document, dict):
        raise ParseError(path or schema.name, "expected a JSON object")

    ignored = sorted(key for key in document if key not in schema.keys)
    if ignored:
        logger.debug("document_keys_ignored", schema=schema.name, keys=ignored)

    mutators: List[Mutator] = []

    for entry in schema.entries:
        if entry.members:
            value = {}
            for key in entry.members:
                member = document.get(key)
                if isinstance(member, _Repeated):
                    raise ParseError(_join(path, key), "may appear at most once")
                if member is not None:
                    value[key] = member
            if value:
                mutators.extend(entry.build(value, path))
            continue

        value = document.get(entry.key)
        if value is None:
            continue

        field_path = _join(path, entry.key)
        for item in _occurrences(value, entry, field_path):
            mutators.extend(entry.build(item, field_path))

    return mutators


def parse_document(text: str, schema: Schema) -> List[Mutator]:
    """
    Parse a JSON document into an ordered list of mutators.

    Args:
        text: JSON text
        schema: One of the module's schemas

    Returns:
        Mutators in schema order (empty if no recognized key is present)

    Raises:
        ParseError: If the text is not valid JSON or any field is invalid
    """
    mutators = parse_record(_decode(text), schema)
    logger.debug("document_parsed", schema=schema.name, mutator_count=len(mutators))
    return mutators


@dataclass(frozen=True)
class TransactionRequest:
    """A parsed generic transaction document."""
    mutators: Tuple[Mutator, ...]
    signers: Tuple[str, ...] = ()

    def __repr__(self) -> str:
        return f"TransactionRequest(mutators={self.mutators!r}, signers=<{len(self.signers)} seeds>)"


def parse_transaction_request(text: str) -> TransactionRequest:
    """
    Parse a generic transaction document.

    The document has the form
    {"source-account": ..., "memo": ..., "operations": ..., "signers": [...]}.
    Omitted signers are left empty so the signer falls back to the
    source account seed.

    Raises:
        ParseError: If the document or any field is invalid
    """
    document = _decode(text)
    mutators = parse_record(document, TRANSACTION_SCHEMA)

    signers = document.get("signers")
    if signers is None:
        return TransactionRequest(tuple(mutators))
    if isinstance(signers, _Repeated):
        raise ParseError("signers", "may appear at most once")

    seeds = _validate(_SIGNERS.validate_python, signers, "signers")
    return TransactionRequest(tuple(mutators), tuple(seeds))
