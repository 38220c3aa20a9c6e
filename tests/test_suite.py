"""
test_suite.py - Tests for the conformance scenarios and the registry

Tests:
- Each scenario passes against the in-memory reference ledger
- Each scenario fails, naming the broken rule, against a misbehaving binding
- Account setup failures stay local to the scenario
- Registry order, names and single-shot test units
"""

import pytest

from ledger_suite import (
    Account, Value, StandardRecord, OutcomeStatus, SuiteConfig,
    LedgerError, CallError, ProtocolViolation, SetupError, TransferError, TransferRejected,
    format_error,
)
from ledger_suite import suite

from tests.fake_env import (
    CALLER, ExplicitSubaccountLedger, OverchargingLedger, PartialBurnEnv, RejectingBurnEnv,
    StaleFeeMetadataEnv, UnreachableEnv, funded_env,
)


def _chain(exc):
    """Messages of an exception and its causes, outermost first."""
    messages = []
    while exc is not None:
        messages.append(str(exc))
        exc = exc.__cause__
    return messages


# =============================================================================
# ACCOUNT SETUP
# =============================================================================

class TestSetupTestAccount:

    @pytest.mark.asyncio
    async def test_seeds_fresh_account(self):
        env = funded_env(50_000)
        child = await suite.setup_test_account(env, 20_000)
        assert child.principal() != CALLER
        assert env.ledger.balance_of(Account(child.principal())) == 20_000
        assert env.ledger.balance_of(Account(CALLER)) == 50_000 - 20_000 - env.ledger.fee

    @pytest.mark.asyncio
    async def test_insufficient_caller_balance_is_setup_error(self):
        env = funded_env(20_009)
        with pytest.raises(SetupError) as exc_info:
            await suite.setup_test_account(env, 20_000)
        assert str(exc_info.value) == (
            "the caller balance 20009 cannot fund a test account with 20000 tokens "
            "plus the 10 transfer fee"
        )

    @pytest.mark.asyncio
    async def test_exact_balance_is_enough(self):
        env = funded_env(20_010)
        await suite.setup_test_account(env, 20_000)
        assert env.ledger.balance_of(Account(CALLER)) == 0

    @pytest.mark.asyncio
    async def test_rejected_funding_is_setup_error_with_cause(self):
        env = funded_env(30_000)

        async def reject(args):
            raise TransferRejected(TransferError.temporarily_unavailable())

        env.transfer = reject
        with pytest.raises(SetupError, match="failed to fund test account test-account-1") as exc_info:
            await suite.setup_test_account(env, 20_000)
        assert isinstance(exc_info.value.__cause__, TransferRejected)


# =============================================================================
# TRANSFER
# =============================================================================

class TestTransferScenario:

    @pytest.mark.asyncio
    async def test_passes_on_reference_ledger(self, env):
        outcome = await suite.test_transfer(env)
        assert outcome.status is OutcomeStatus.PASSED

    @pytest.mark.asyncio
    async def test_end_to_end_balances(self):
        """Caller funds exactly two seeds: sender keeps 9,990, receiver holds 30,000."""
        env = funded_env(40_020)
        await suite.test_transfer(env)
        sender, receiver = Account("test-account-1"), Account("test-account-2")
        assert env.ledger.balance_of(sender) == 9_990
        assert env.ledger.balance_of(receiver) == 30_000
        assert env.ledger.balance_of(Account("test-account-2", bytes(32))) == 30_000

    @pytest.mark.asyncio
    async def test_caller_short_of_second_seed_fails(self):
        """40,000 covers one seed plus fee but not the second one."""
        env = funded_env(40_000)
        with pytest.raises(SetupError, match="caller balance 19990"):
            await suite.test_transfer(env)

    @pytest.mark.asyncio
    async def test_explicit_zero_subaccount_mismatch_fails(self):
        env = funded_env(100_000, ledger_class=ExplicitSubaccountLedger)
        with pytest.raises(ProtocolViolation) as exc_info:
            await suite.test_transfer(env)
        messages = _chain(exc_info.value)
        assert messages[0] == (
            "the ledger does not treat accounts with an empty subaccount "
            "as accounts with the default subaccount"
        )
        assert "to be 30000, got 0" in messages[1]

    @pytest.mark.asyncio
    async def test_overcharged_fee_fails_sender_check(self):
        env = funded_env(100_000, ledger_class=OverchargingLedger)
        with pytest.raises(ProtocolViolation, match="to be 9990, got 9980"):
            await suite.test_transfer(env)

    @pytest.mark.asyncio
    async def test_custom_amounts(self):
        env = funded_env(10_000)
        config = SuiteConfig(seed_amount=1_000, transfer_amount=400, burn_amount=500)
        outcome = await suite.test_transfer(env, config)
        assert outcome.status is OutcomeStatus.PASSED
        assert env.ledger.balance_of(Account("test-account-1")) == 1_000 - 400 - 10


# =============================================================================
# BURN
# =============================================================================

class TestBurnScenario:

    @pytest.mark.asyncio
    async def test_passes_on_reference_ledger(self, env):
        outcome = await suite.test_burn(env)
        assert outcome.status is OutcomeStatus.PASSED
        assert env.ledger.balance_of(Account("test-account-1")) == 0

    @pytest.mark.asyncio
    async def test_rejected_burn_fails(self):
        env = funded_env(100_000, env_class=RejectingBurnEnv)
        with pytest.raises(LedgerError) as exc_info:
            await suite.test_burn(env)
        assert str(exc_info.value) == "failed to burn 10000 tokens"
        assert isinstance(exc_info.value.__cause__, TransferRejected)

    @pytest.mark.asyncio
    async def test_partial_burn_fails(self):
        env = funded_env(100_000, env_class=PartialBurnEnv)
        with pytest.raises(ProtocolViolation, match="to be 0, got 5000"):
            await suite.test_burn(env)


# =============================================================================
# METADATA
# =============================================================================

class TestMetadataScenario:

    @pytest.mark.asyncio
    async def test_passes_on_reference_ledger(self, env):
        outcome = await suite.test_metadata(env)
        assert outcome.status is OutcomeStatus.PASSED

    @pytest.mark.asyncio
    async def test_duplicate_key_fails(self):
        env = funded_env(0, extra_metadata=[("icrc1:name", Value.text("Test Token"))])
        with pytest.raises(ProtocolViolation, match="Key icrc1:name is duplicated in the metadata"):
            await suite.test_metadata(env)

    @pytest.mark.asyncio
    async def test_fee_mismatch_names_key(self):
        env = funded_env(0, env_class=StaleFeeMetadataEnv)
        with pytest.raises(ProtocolViolation) as exc_info:
            await suite.test_metadata(env)
        assert _chain(exc_info.value) == [
            "icrc1:fee metadata entry does not match the icrc1_fee endpoint",
            "Nat(10) ≠ Nat(20)",
        ]

    @pytest.mark.asyncio
    async def test_absent_keys_skip_cross_check(self):
        env = funded_env(0)

        async def no_metadata():
            return [("other:key", Value.text("x"))]

        env.metadata = no_metadata
        outcome = await suite.test_metadata(env)
        assert outcome.status is OutcomeStatus.PASSED

    @pytest.mark.asyncio
    async def test_decimals_kind_must_be_nat(self):
        env = funded_env(0)

        async def int_decimals():
            return [("icrc1:decimals", Value.integer(8))]

        env.metadata = int_decimals
        with pytest.raises(ProtocolViolation, match="icrc1:decimals metadata entry"):
            await suite.test_metadata(env)

    @pytest.mark.asyncio
    async def test_unreachable_ledger_is_call_error(self):
        env = funded_env(0, env_class=UnreachableEnv)
        with pytest.raises(CallError, match="failed to call icrc1_metadata"):
            await suite.test_metadata(env)


# =============================================================================
# SUPPORTED STANDARDS
# =============================================================================

class TestSupportedStandardsScenario:

    @pytest.mark.asyncio
    async def test_passes_on_reference_ledger(self, env):
        outcome = await suite.test_supported_standards(env)
        assert outcome.status is OutcomeStatus.PASSED

    @pytest.mark.asyncio
    async def test_missing_icrc1_reports_observed_list(self):
        env = funded_env(0, standards=[StandardRecord("ICRC-2", "https://example.org/icrc2")])
        with pytest.raises(ProtocolViolation) as exc_info:
            await suite.test_supported_standards(env)
        assert format_error(exc_info.value) == [
            "The ledger does not claim support for ICRC-1: "
            "[StandardRecord(name='ICRC-2', url='https://example.org/icrc2')]"
        ]

    @pytest.mark.asyncio
    async def test_icrc1_among_others_passes(self):
        env = funded_env(0, standards=[StandardRecord("ICRC-2"), StandardRecord("ICRC-1")])
        outcome = await suite.test_supported_standards(env)
        assert outcome.status is OutcomeStatus.PASSED


# =============================================================================
# REGISTRY
# =============================================================================

class TestRegistry:

    def test_suite_names_in_order(self, env):
        tests = suite.test_suite(env)
        assert [t.name for t in tests] == [
            "basic:transfer", "basic:burn", "basic:metadata", "basic:supported_standards",
        ]
        for t in tests:
            t.take().close()

    def test_unit_is_single_shot(self, env):
        unit = suite.test("basic:metadata", suite.test_metadata(env))
        assert not unit.started
        action = unit.take()
        assert unit.started
        with pytest.raises(RuntimeError, match="already been started"):
            unit.take()
        action.close()

    def test_config_rejects_transfer_above_seed(self):
        with pytest.raises(ValueError):
            SuiteConfig(seed_amount=100, transfer_amount=200)

    def test_config_rejects_non_positive_amounts(self):
        with pytest.raises(ValueError):
            SuiteConfig(burn_amount=0)
