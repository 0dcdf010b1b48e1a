"""
Property-based tests for path matching, rule resolution and transaction classification.

These tests verify that properties hold true across many random inputs.
"""
import string

from hypothesis import given, settings, strategies as st
from solders.keypair import Keypair

from solana_actions_sdk.exceptions import RejectReason
from solana_actions_sdk.models import RuleEntry
from solana_actions_sdk.routing.pattern import match
from solana_actions_sdk.routing.resolver import RuleTable
from solana_actions_sdk.transaction.trust import Rejection, TransactionTrustClassifier, TrustVerdict
from tests.test_helpers import FakeBlockchain, address, build_transaction

# Path segments never contain separators or pattern operators
segment_strategy = st.text(alphabet=string.ascii_letters + string.digits + "-_.~", min_size=1, max_size=12)
segments_strategy = st.lists(segment_strategy, min_size=0, max_size=6)
query_strategy = st.dictionaries(
    keys=st.text(alphabet=string.ascii_lowercase, min_size=1, max_size=8),
    values=st.text(alphabet=string.ascii_letters + string.digits, max_size=8),
    max_size=4,
)


@settings(max_examples=100)
@given(prefix=segments_strategy, value=segment_strategy)
def test_single_wildcard_captures_exactly_one_segment(prefix, value):
    pattern = "/" + "/".join(prefix + ["*"])
    path = "/" + "/".join(prefix + [value])

    result = match(pattern, path)

    assert result.matched
    assert result.captures == (value,)
    # one more segment no longer matches
    assert not match(pattern, path + "/extra")


@settings(max_examples=100)
@given(prefix=segments_strategy, rest=segments_strategy)
def test_glob_captures_the_remainder(prefix, rest):
    pattern = "/" + "/".join(prefix + ["**"])
    path = "/" + "/".join(prefix + rest)

    result = match(pattern, path)

    assert result.matched
    assert result.captures == ("/".join(rest),)


@settings(max_examples=100)
@given(prefix=segments_strategy, value=segment_strategy, query=query_strategy)
def test_resolution_is_idempotent(prefix, value, query):
    base = "/".join(prefix)
    table = RuleTable([
        RuleEntry(pathPattern=f"/{base}/*".replace("//", "/"), apiPath="/api/*"),
        RuleEntry(pathPattern="/**", apiPath="/api/fallback/**"),
    ])
    path = f"/{base}/{value}".replace("//", "/")

    first = table.resolve(path, query)
    second = table.resolve(path, query)

    assert first == second
    assert first.api_path == f"/api/{value}"
    assert first.query == query


@settings(max_examples=100)
@given(rest=segments_strategy)
def test_catch_all_rule_always_resolves(rest):
    table = RuleTable([RuleEntry(pathPattern="/**", apiPath="/api/actions/**")])
    route = table.resolve("/" + "/".join(rest))
    expected = "/".join(["/api/actions"] + rest)
    assert route.api_path == expected


REQUESTER = Keypair()
RECIPIENT = Keypair()


@settings(max_examples=200)
@given(data=st.binary(max_size=400))
def test_classifier_never_raises_on_arbitrary_bytes(data):
    classifier = TransactionTrustClassifier(FakeBlockchain())
    result = classifier.classify(data, address(REQUESTER))
    assert isinstance(result, (Rejection, TrustVerdict))


@settings(max_examples=100)
@given(cut=st.integers(min_value=0))
def test_truncated_transaction_is_malformed(cut):
    data = bytes(build_transaction([REQUESTER.pubkey()], RECIPIENT.pubkey()))
    classifier = TransactionTrustClassifier(FakeBlockchain())

    result = classifier.classify(data[:cut % len(data)], address(REQUESTER))

    assert isinstance(result, Rejection)
    assert result.reason == RejectReason.MALFORMED
