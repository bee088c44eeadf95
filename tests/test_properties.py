"""
Property-based tests for the ledger invariants.

For any sequence of events, accepted or rejected:
- total is always available + held
- Dispute and Resolve never change a client's total
- only Deposit, Withdrawal and Chargeback change the system-wide total,
  and only by the amount recorded with the original transaction
- a rejected event changes nothing
- a locked account never changes again
"""

import sys
import os
from decimal import Decimal
from typing import Dict, Tuple

from hypothesis import given, settings
from hypothesis import strategies as st

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from errors import ProcessingError
from ledger_processor import LedgerProcessor
from models import Chargeback, Deposit, Dispute, Resolve, Withdrawal
from stores import AccountStore, RecordStore

CLIENTS = st.integers(min_value=1, max_value=3)
TX_IDS = st.integers(min_value=1, max_value=12)
AMOUNTS = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1000"),
    places=4,
    allow_nan=False,
    allow_infinity=False,
)


@st.composite
def transaction(draw):
    client_id = draw(CLIENTS)
    transaction_id = draw(TX_IDS)
    kind = draw(st.sampled_from([Deposit, Withdrawal, Dispute, Resolve, Chargeback]))
    if kind in (Deposit, Withdrawal):
        return kind(client_id, transaction_id, draw(AMOUNTS))
    return kind(client_id, transaction_id)


def snapshot(accounts: AccountStore) -> Dict[int, Tuple[Decimal, Decimal, bool]]:
    return {
        account.client_id: (account.available, account.held, account.locked)
        for account in accounts.all_accounts()
    }


def system_total(accounts: AccountStore) -> Decimal:
    return sum((account.total for account in accounts.all_accounts()), Decimal("0"))


def without(state, client_id):
    return {key: value for key, value in state.items() if key != client_id}


class TestLedgerInvariants:
    @settings(max_examples=300, deadline=None)
    @given(st.lists(transaction(), max_size=60))
    def test_invariants_hold_after_every_event(self, transactions):
        accounts = AccountStore()
        records = RecordStore()
        processor = LedgerProcessor(accounts, records)

        for tx in transactions:
            before = snapshot(accounts)
            total_before = system_total(accounts)
            record_before = records.get(tx.transaction_id)
            recorded_amount = record_before.amount if record_before is not None else None

            try:
                processor.process(tx)
            except ProcessingError:
                after = snapshot(accounts)
                # A rejected event may create an empty account, nothing else.
                assert without(after, tx.client_id) == without(before, tx.client_id)
                if tx.client_id in before:
                    assert after[tx.client_id] == before[tx.client_id]
                else:
                    assert after[tx.client_id] == (Decimal("0"), Decimal("0"), False)
                continue

            after = snapshot(accounts)
            assert before.get(tx.client_id, (None, None, False))[2] is False
            assert without(after, tx.client_id) == without(before, tx.client_id)

            delta = system_total(accounts) - total_before
            if isinstance(tx, Deposit):
                assert delta == tx.amount
            elif isinstance(tx, Withdrawal):
                assert delta == -tx.amount
                assert after[tx.client_id][0] >= 0
            elif isinstance(tx, Chargeback):
                assert delta == -recorded_amount
                assert after[tx.client_id][2] is True
            else:
                assert delta == 0

            for account in accounts.all_accounts():
                assert account.total == account.available + account.held

    @settings(max_examples=100, deadline=None)
    @given(st.lists(transaction(), max_size=40))
    def test_rejected_replays_change_nothing(self, transactions):
        accounts = AccountStore()
        processor = LedgerProcessor(accounts)

        for tx in transactions:
            try:
                processor.process(tx)
            except ProcessingError:
                pass

        # A re-dispute after resolve is accepted; any other replay is rejected.
        for tx in transactions:
            if not isinstance(tx, (Dispute, Resolve, Chargeback)):
                continue
            before = snapshot(accounts)
            try:
                processor.process(tx)
            except ProcessingError:
                assert snapshot(accounts) == before

    @settings(max_examples=100, deadline=None)
    @given(AMOUNTS, st.lists(transaction(), max_size=30))
    def test_locked_account_frozen(self, amount, transactions):
        accounts = AccountStore()
        processor = LedgerProcessor(accounts)

        processor.process(Deposit(1, 100, amount))
        processor.process(Dispute(1, 100))
        processor.process(Chargeback(1, 100))
        frozen = snapshot(accounts)[1]
        assert frozen[2] is True

        for tx in transactions:
            try:
                processor.process(tx)
            except ProcessingError:
                pass
            assert snapshot(accounts)[1] == frozen
