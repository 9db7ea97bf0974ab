"""
Test suite for structured document parsing.

Tests the conversion of JSON documents into ordered mutator sequences.
"""

import json

import pytest

from stellar_mc.core.mutators import (
    CATALOG,
    CreateAccount,
    MemoText,
    MergeMode,
    MutatorKind,
    Payment,
    SetHomeDomain,
    SetInflationDestination,
    SetMasterWeight,
    SourceAccountDesignation,
    TrustlineChange,
)
from stellar_mc.core.parser import (
    OPERATIONS_SCHEMA,
    OPTIONS_SCHEMA,
    PAYMENT_SCHEMA,
    TRANSACTION_SCHEMA,
    TRUSTLINE_SCHEMA,
    parse_document,
    parse_transaction_request,
)
from stellar_mc.exceptions import ParseError


ALL_SCHEMAS = [
    OPTIONS_SCHEMA,
    OPERATIONS_SCHEMA,
    TRANSACTION_SCHEMA,
    PAYMENT_SCHEMA,
    TRUSTLINE_SCHEMA,
]


# ============================================================================
# Test Mutator Catalog
# ============================================================================

class TestMutatorCatalog:
    """Tests for the closed mutator catalog."""

    def test_every_kind_has_an_entry(self):
        """Test that the catalog covers every mutator kind."""
        assert set(CATALOG) == set(MutatorKind)

    def test_payments_repeat_home_domain_does_not(self):
        """Test multiplicity declared by the catalog."""
        assert CATALOG[MutatorKind.PAYMENT].repeatable is True
        assert CATALOG[MutatorKind.HOME_DOMAIN].repeatable is False

    @pytest.mark.parametrize("schema", [OPTIONS_SCHEMA, OPERATIONS_SCHEMA, TRANSACTION_SCHEMA])
    def test_schema_multiplicity_follows_catalog(self, schema):
        """Test that schema entries take their multiplicity from the catalog."""
        for entry in schema.entries:
            if entry.kind is not None:
                assert entry.repeatable is CATALOG[entry.kind].repeatable

    def test_merge_modes(self):
        """Test how each kind merges into a transaction."""
        assert CATALOG[MutatorKind.PAYMENT].merge == MergeMode.OPERATION
        assert CATALOG[MutatorKind.MASTER_WEIGHT].merge == MergeMode.OPTION
        assert CATALOG[MutatorKind.SOURCE_ACCOUNT].merge == MergeMode.TRANSACTION

    def test_trustline_limit_semantics(self):
        """Test that only a zero limit removes a trustline."""
        assert TrustlineChange("XYZ", "GISSUER", limit="0").removes_trustline is True
        assert TrustlineChange("XYZ", "GISSUER", limit="0.0000000").removes_trustline is True
        assert TrustlineChange("XYZ", "GISSUER", limit="10").removes_trustline is False
        assert TrustlineChange("XYZ", "GISSUER").removes_trustline is False

    def test_seed_not_shown_in_repr(self):
        """Test that designating a seed does not print it."""
        designation = SourceAccountDesignation("SBSECRETSEED")
        assert "SBSECRETSEED" not in repr(designation)

    @pytest.mark.parametrize("account", ["GADDRESS", "X", "not-an-account"])
    def test_non_seed_shown_in_repr(self, account):
        """Test that only seed-like values are masked."""
        designation = SourceAccountDesignation(account)
        assert repr(designation) == f"SourceAccountDesignation(account={account!r})"


# ============================================================================
# Test Empty and Unknown Input
# ============================================================================

class TestEmptyDocuments:
    """Tests for documents without recognized fields."""

    @pytest.mark.parametrize("schema", ALL_SCHEMAS, ids=lambda s: s.name)
    def test_empty_document_gives_no_mutators(self, schema):
        """Test that an empty object yields an empty sequence."""
        assert parse_document("{}", schema) == []

    @pytest.mark.parametrize("schema", ALL_SCHEMAS, ids=lambda s: s.name)
    def test_unknown_keys_are_ignored(self, schema):
        """Test forward compatibility with unrecognized keys."""
        assert parse_document('{"future-field": 1, "other": {"a": 2}}', schema) == []

    def test_null_fields_are_skipped(self):
        """Test that null fields never instantiate a mutator."""
        document = '{"home-domain": null, "master-weight": null}'
        assert parse_document(document, OPTIONS_SCHEMA) == []

    def test_null_payment_fields_are_skipped(self):
        """Test that a flat document with only nulls yields nothing."""
        document = '{"from": null, "to": null, "token": null, "amount": null, "issuer": null}'
        assert parse_document(document, PAYMENT_SCHEMA) == []


# ============================================================================
# Test Payment Documents
# ============================================================================

class TestPaymentDocuments:
    """Tests for send-payment documents."""

    def test_payment_scenario(self):
        """Test the canonical payment document."""
        document = '{"from":"SEEDA","to":"ADDRB","token":"XYZ","amount":"42.0","issuer":"ADDRC"}'

        mutators = parse_document(document, PAYMENT_SCHEMA)

        assert mutators == [
            SourceAccountDesignation("SEEDA"),
            Payment(destination="ADDRB", asset_code="XYZ", issuer="ADDRC", amount="42.0"),
        ]
        payments = [m for m in mutators if isinstance(m, Payment)]
        assert len(payments) == 1
        assert payments[0].amount == "42.0"

    @pytest.mark.parametrize("missing", ["to", "token", "amount", "issuer"])
    def test_missing_payment_field_is_named(self, missing):
        """Test that a missing sub-field is reported by name."""
        document = {"from": "SEEDA", "to": "ADDRB", "token": "XYZ", "amount": "1", "issuer": "ADDRC"}
        del document[missing]

        with pytest.raises(ParseError) as exc_info:
            parse_document(json.dumps(document), PAYMENT_SCHEMA)

        assert exc_info.value.field == missing
        assert missing in str(exc_info.value)

    def test_float_amount_is_rejected(self):
        """Test that amounts must be decimal strings."""
        document = '{"from":"SEEDA","to":"ADDRB","token":"XYZ","amount":42.0,"issuer":"ADDRC"}'

        with pytest.raises(ParseError) as exc_info:
            parse_document(document, PAYMENT_SCHEMA)

        assert exc_info.value.field == "amount"

    def test_non_decimal_amount_is_rejected(self):
        """Test that amount strings must be numbers."""
        document = '{"from":"SEEDA","to":"ADDRB","token":"XYZ","amount":"lots","issuer":"ADDRC"}'

        with pytest.raises(ParseError) as exc_info:
            parse_document(document, PAYMENT_SCHEMA)

        assert exc_info.value.field == "amount"

    def test_precise_amount_kept_verbatim(self):
        """Test that amounts are never rounded."""
        document = '{"to":"ADDRB","token":"XYZ","amount":"0.1000001","issuer":"ADDRC"}'

        [payment] = parse_document(document, PAYMENT_SCHEMA)

        assert payment.amount == "0.1000001"


# ============================================================================
# Test Trustline Documents
# ============================================================================

class TestTrustlineDocuments:
    """Tests for change-trust documents."""

    def test_zero_limit_removes_trustline(self):
        """Test the trustline removal scenario."""
        document = '{"source-account":"SEEDA","code":"XYZ","issuer-address":"ADDRB","limit":"0"}'

        mutators = parse_document(document, TRUSTLINE_SCHEMA)

        assert mutators == [
            SourceAccountDesignation("SEEDA"),
            TrustlineChange(asset_code="XYZ", issuer="ADDRB", limit="0"),
        ]
        assert mutators[1].removes_trustline is True

    def test_omitted_limit_is_unlimited(self):
        """Test that an omitted limit differs from a zero limit."""
        document = '{"source-account":"SEEDA","code":"XYZ","issuer-address":"ADDRB"}'

        [_, change] = parse_document(document, TRUSTLINE_SCHEMA)

        assert change.limit is None
        assert change.removes_trustline is False
        assert change != TrustlineChange(asset_code="XYZ", issuer="ADDRB", limit="0")

    def test_missing_issuer_uses_document_key(self):
        """Test that errors name the field as written in the document."""
        with pytest.raises(ParseError) as exc_info:
            parse_document('{"source-account":"SEEDA","code":"XYZ"}', TRUSTLINE_SCHEMA)

        assert exc_info.value.field == "issuer-address"


# ============================================================================
# Test Options Documents
# ============================================================================

class TestOptionsDocuments:
    """Tests for the options sub-document."""

    def test_options_in_schema_order(self):
        """Test that options follow schema order, not text order."""
        document = '{"inflation-destination": "ADDRX", "master-weight": 2, "home-domain": "stellar.org"}'

        assert parse_document(document, OPTIONS_SCHEMA) == [
            SetHomeDomain("stellar.org"),
            SetMasterWeight(2),
            SetInflationDestination("ADDRX"),
        ]

    def test_duplicate_home_domain_is_rejected(self):
        """Test that a non-repeatable option declared twice fails."""
        document = '{"home-domain": "a.org", "home-domain": "b.org"}'

        with pytest.raises(ParseError) as exc_info:
            parse_document(document, OPTIONS_SCHEMA)

        assert exc_info.value.field == "home-domain"
        assert "at most once" in exc_info.value.reason

    @pytest.mark.parametrize("weight", [-1, 256, "1", 1.5, True])
    def test_invalid_master_weight(self, weight):
        """Test that weights must be integers in 0..255."""
        document = json.dumps({"master-weight": weight})

        with pytest.raises(ParseError) as exc_info:
            parse_document(document, OPTIONS_SCHEMA)

        assert exc_info.value.field == "master-weight"


# ============================================================================
# Test Generic Transaction Documents
# ============================================================================

class TestTransactionDocuments:
    """Tests for new-tx documents."""

    def test_nested_operations(self):
        """Test operations and options nested in a transaction."""
        document = json.dumps({
            "source-account": "SEEDA",
            "memo": "hello",
            "operations": {
                "options": {"home-domain": "stellar.org"},
                "trust": {"code": "XYZ", "issuer-address": "ADDRB"},
                "payment": [
                    {"to": "ADDRC", "token": "XYZ", "amount": "1", "issuer": "ADDRB"},
                    {"to": "ADDRD", "token": "XYZ", "amount": "2", "issuer": "ADDRB"},
                ],
            },
        })

        request = parse_transaction_request(document)

        assert request.mutators == (
            SourceAccountDesignation("SEEDA"),
            MemoText("hello"),
            Payment("ADDRC", "XYZ", "ADDRB", "1"),
            Payment("ADDRD", "XYZ", "ADDRB", "2"),
            TrustlineChange("XYZ", "ADDRB"),
            SetHomeDomain("stellar.org"),
        )
        assert request.signers == ()

    def test_repeated_payment_key(self):
        """Test that a repeatable key may be declared more than once."""
        document = (
            '{"payment": {"to": "A", "token": "XYZ", "amount": "1", "issuer": "I"},'
            ' "payment": {"to": "B", "token": "XYZ", "amount": "2", "issuer": "I"}}'
        )

        mutators = parse_document(document, OPERATIONS_SCHEMA)

        assert [m.destination for m in mutators] == ["A", "B"]

    def test_operation_list_keeps_document_order(self):
        """Test that a list of operations is kept in written order."""
        document = json.dumps({
            "source-account": "SEEDA",
            "operations": [
                {"trust": {"code": "XYZ", "issuer-address": "ADDRB"}},
                {"create-account": {"destination": "ADDRN", "starting-balance": "5"}},
                {"payment": {"to": "ADDRC", "token": "XYZ", "amount": "1", "issuer": "ADDRB"}},
            ],
        })

        request = parse_transaction_request(document)

        assert [type(m) for m in request.mutators] == [
            SourceAccountDesignation,
            TrustlineChange,
            CreateAccount,
            Payment,
        ]

    def test_unknown_operation_in_list(self):
        """Test that a list entry matching no operation fails."""
        document = json.dumps({"operations": [{"teleport": {"to": "ADDRB"}}]})

        with pytest.raises(ParseError) as exc_info:
            parse_transaction_request(document)

        assert exc_info.value.field == ParseError.UNKNOWN_OPERATION

    def test_list_entry_with_two_operations(self):
        """Test that each list entry holds exactly one operation."""
        document = json.dumps({"operations": [{
            "trust": {"code": "XYZ", "issuer-address": "ADDRB"},
            "create-account": {"destination": "ADDRN", "starting-balance": "5"},
        }]})

        with pytest.raises(ParseError) as exc_info:
            parse_transaction_request(document)

        assert exc_info.value.field == "operations[0]"

    @pytest.mark.parametrize("key,first,second", [
        ("home-domain", "a.org", "b.org"),
        ("master-weight", 1, 2),
        ("inflation-destination", "ADDRX", "ADDRY"),
    ])
    def test_option_repeated_across_list_entries(self, key, first, second):
        """Test that a single-use option may not be set by two list entries."""
        document = json.dumps({
            "source-account": "ADDRA",
            "operations": [
                {"options": {key: first}},
                {"payment": {"to": "ADDRC", "token": "XYZ", "amount": "1", "issuer": "ADDRB"}},
                {"options": {key: second}},
            ],
        })

        with pytest.raises(ParseError) as exc_info:
            parse_transaction_request(document)

        assert exc_info.value.field == f"operations[2].options.{key}"
        assert "at most once" in exc_info.value.reason

    def test_distinct_options_across_list_entries(self):
        """Test that different options may come from different list entries."""
        document = json.dumps({
            "source-account": "ADDRA",
            "operations": [
                {"options": {"home-domain": "a.org"}},
                {"options": {"master-weight": 3}},
            ],
        })

        request = parse_transaction_request(document)

        assert request.mutators[1:] == (SetHomeDomain("a.org"), SetMasterWeight(3))

    def test_repeated_payments_across_list_entries(self):
        """Test that repeatable operations may appear in several entries."""
        payment = {"to": "ADDRC", "token": "XYZ", "amount": "1", "issuer": "ADDRB"}
        document = json.dumps({"operations": [{"payment": payment}, {"payment": payment}]})

        request = parse_transaction_request(document)

        assert len(request.mutators) == 2

    @pytest.mark.parametrize("document", [
        {"operations": {"options": [{"home-domain": "a.org"}]}},
        {"source-account": ["ADDRA", "ADDRB"]},
        {"memo": ["one", "two"]},
    ])
    def test_list_for_single_use_key(self, document):
        """Test that a list given to a single-use key is a multiplicity error."""
        with pytest.raises(ParseError) as exc_info:
            parse_transaction_request(json.dumps(document))

        assert "at most once" in exc_info.value.reason

    def test_nested_missing_field_path(self):
        """Test that nested errors carry the full field path."""
        document = json.dumps({"operations": {"payment": {"to": "A", "token": "XYZ", "issuer": "I"}}})

        with pytest.raises(ParseError) as exc_info:
            parse_transaction_request(document)

        assert exc_info.value.field == "operations.payment.amount"

    def test_signers_are_extracted(self):
        """Test that signers are returned in order."""
        document = json.dumps({"source-account": "ADDRA", "signers": ["S1", "S2"]})

        request = parse_transaction_request(document)

        assert request.mutators == (SourceAccountDesignation("ADDRA"),)
        assert request.signers == ("S1", "S2")
        assert "S1" not in repr(request)

    def test_invalid_signers(self):
        """Test that signers must be a list of strings."""
        with pytest.raises(ParseError) as exc_info:
            parse_transaction_request('{"signers": "S1"}')

        assert exc_info.value.field == "signers"


# ============================================================================
# Test Parse Failures and Determinism
# ============================================================================

class TestParseFailures:
    """Tests for whole-document rejection."""

    @pytest.mark.parametrize("text", ["{", "not json", '{"home-domain": }'])
    def test_malformed_json(self, text):
        """Test that syntax errors are reported as such."""
        with pytest.raises(ParseError) as exc_info:
            parse_document(text, OPTIONS_SCHEMA)

        assert exc_info.value.field == ParseError.SYNTAX

    @pytest.mark.parametrize("text", ["[]", '"text"', "42", "null"])
    def test_document_must_be_object(self, text):
        """Test that only JSON objects are accepted."""
        with pytest.raises(ParseError):
            parse_document(text, OPTIONS_SCHEMA)

    def test_no_partial_result(self):
        """Test that one bad field rejects every other field."""
        document = json.dumps({
            "source-account": "SEEDA",
            "operations": {
                "trust": {"code": "XYZ", "issuer-address": "ADDRB"},
                "options": {"master-weight": 999},
            },
        })

        with pytest.raises(ParseError):
            parse_transaction_request(document)


class TestDeterminism:
    """Tests for repeatable parsing."""

    def test_same_document_same_sequence(self):
        """Test that parsing twice yields equal content and order."""
        document = json.dumps({
            "source-account": "SEEDA",
            "operations": {
                "payment": [
                    {"to": "A", "token": "XYZ", "amount": "1", "issuer": "I"},
                    {"to": "B", "token": "XYZ", "amount": "2", "issuer": "I"},
                ],
                "trust": {"code": "XYZ", "issuer-address": "I", "limit": "0"},
                "options": {"home-domain": "stellar.org", "master-weight": 1},
            },
        })

        first = parse_transaction_request(document)
        second = parse_transaction_request(document)

        assert first.mutators == second.mutators
        assert [type(m) for m in first.mutators] == [type(m) for m in second.mutators]
