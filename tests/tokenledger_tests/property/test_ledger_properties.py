"""
Property-based tests for the token ledger.

Uses Hypothesis to check that transfers conserve supply, that overdrafts
never change state, and that composite keys survive a split.
"""

from hypothesis import given, settings, strategies as st
from prometheus_client import CollectorRegistry

from tokenledger.chaincode import ChaincodeRuntime, TokenChaincode
from tokenledger.contracts.token_ledger import UINT64_MAX
from tokenledger.core.composite_key import (
    MAX_UNICODE_RUNE,
    MIN_UNICODE_RUNE,
    make_composite_key,
    partial_key_range,
    split_composite_key,
)
from tokenledger.core.metrics import ChaincodeMetrics
from tokenledger.core.state_backends import MemoryStateBackend

ADDRESSES = ["alice", "bob", "carol", "dave"]

key_text = st.text(
    alphabet=st.characters(exclude_characters=[MIN_UNICODE_RUNE, MAX_UNICODE_RUNE], exclude_categories=["Cs"]),
    max_size=12,
)


def _fresh_runtime(supply):
    runtime = ChaincodeRuntime(
        TokenChaincode(),
        MemoryStateBackend(),
        metrics=ChaincodeMetrics(registry=CollectorRegistry()),
    )
    assert runtime.instantiate(["GoldCoin", "GLD", "alice", str(supply)]).ok
    return runtime


def _balances(runtime):
    return {
        address: int(runtime.invoke("balanceOf", [address]).payload)
        for address in ADDRESSES
    }


class TestCompositeKeyProperties:
    @given(namespace=key_text.filter(bool), parts=st.lists(key_text, max_size=5))
    @settings(max_examples=200)
    def test_split_inverts_make(self, namespace, parts):
        key = make_composite_key(namespace, parts)
        assert split_composite_key(key) == (namespace, parts)

    @given(
        namespace=key_text.filter(bool),
        prefix=st.lists(key_text, min_size=1, max_size=3),
        suffix=st.lists(key_text, max_size=3),
    )
    @settings(max_examples=200)
    def test_full_key_falls_inside_its_prefix_range(self, namespace, prefix, suffix):
        start, end = partial_key_range(namespace, prefix)
        key = make_composite_key(namespace, prefix + suffix)
        assert start <= key < end


class TestTransferProperties:
    @given(
        supply=st.integers(min_value=0, max_value=10**12),
        transfers=st.lists(
            st.tuples(
                st.sampled_from(ADDRESSES),
                st.sampled_from(ADDRESSES),
                st.integers(min_value=1, max_value=10**12),
            ),
            max_size=15,
        ),
    )
    @settings(max_examples=50, deadline=None)
    def test_transfers_conserve_supply(self, supply, transfers):
        runtime = _fresh_runtime(supply)

        for caller, recipient, amount in transfers:
            before = _balances(runtime)
            response = runtime.invoke("transfer", [caller, recipient, str(amount)])
            after = _balances(runtime)

            if before[caller] >= amount:
                assert response.ok
                if caller != recipient:
                    assert after[caller] == before[caller] - amount
                    assert after[recipient] == before[recipient] + amount
                else:
                    assert after == before
            else:
                assert response.status == 500
                assert after == before

            assert sum(after.values()) == supply
            assert all(balance >= 0 for balance in after.values())

        assert int(runtime.invoke("totalSupply", ["GoldCoin"]).payload) == supply

    @given(
        balance=st.integers(min_value=0, max_value=UINT64_MAX - 1),
        excess=st.integers(min_value=1, max_value=1000),
    )
    @settings(max_examples=100, deadline=None)
    def test_overdraft_never_changes_state(self, balance, excess):
        amount = min(balance + excess, UINT64_MAX)
        runtime = _fresh_runtime(balance)
        state_before = runtime.backend.items()

        response = runtime.invoke("transfer", ["alice", "bob", str(amount)])

        assert not response.ok
        assert response.error_code.value == "INSUFFICIENT_FUNDS"
        assert runtime.backend.items() == state_before
        assert runtime.last_event is None
