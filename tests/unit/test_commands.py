"""
test_commands.py - Unit tests for the command surface

Tests:
- CommandProcessor dispatch of every command type
- APPLIED / REJECTED results and history
- Rejections leave funds unchanged
"""

import pytest

from sharepool import (
    InMemoryCustodian,
    CreateFund, CreateHolder, TransferShares, GrantShares, Claim, Reconcile,
    CommandProcessor, ExecuteResult,
    FundNotRegistered, InsufficientShares, HolderNotRegistered,
)


@pytest.fixture
def processor():
    return CommandProcessor(InMemoryCustodian(), verbose=False)


class TestCommandProcessor:
    """Tests for command execution."""

    def test_create_fund(self, processor):
        result = processor.execute(CreateFund("dao", 10_000, creator="founder"))
        assert result.status == ExecuteResult.APPLIED
        assert result.applied
        assert processor.get_fund("dao").get_holder("founder").share_units == 10_000

    def test_duplicate_fund_rejected(self, processor):
        processor.execute(CreateFund("dao"))
        result = processor.execute(CreateFund("dao"))
        assert result.status == ExecuteResult.REJECTED
        assert isinstance(result.error, ValueError)

    def test_unknown_fund_rejected(self, processor):
        result = processor.execute(Claim("nope", "alice"))
        assert result.status == ExecuteResult.REJECTED
        assert isinstance(result.error, FundNotRegistered)

    def test_get_unknown_fund_raises(self, processor):
        with pytest.raises(FundNotRegistered):
            processor.get_fund("nope")

    def test_end_to_end(self, processor):
        """Create, grant, deposit, claim through commands."""
        results = processor.run([
            CreateFund("dao", 10_000, creator="founder"),
            GrantShares("dao", "alice", 5_000),
            CreateHolder("dao", "bob"),
        ])
        assert all(r.applied for r in results)

        processor.custodian.deposit("dao", 1_000)
        claim = processor.execute(Claim("dao", "alice"))
        assert claim.value == 500

        transfer = processor.execute(TransferShares("dao", "founder", "bob", 5_000))
        assert transfer.applied
        assert transfer.value.sender_earned == 500

        assert processor.execute(Claim("dao", "founder")).value == 500
        assert processor.execute(Claim("dao", "bob")).value == 0

    def test_reconcile_command(self, processor):
        processor.execute(CreateFund("dao"))
        processor.custodian.deposit("dao", 42)
        result = processor.execute(Reconcile("dao"))
        assert result.value.delta == 42

    def test_rejection_keeps_going(self, processor):
        """A rejected command does not stop the rest of a run."""
        results = processor.run([
            CreateFund("dao", 100, creator="founder"),
            TransferShares("dao", "founder", "alice", 101),
            Claim("dao", "mallory"),
            GrantShares("dao", "alice", 10),
        ])
        assert [r.status for r in results] == [
            ExecuteResult.APPLIED, ExecuteResult.REJECTED,
            ExecuteResult.REJECTED, ExecuteResult.APPLIED,
        ]
        assert isinstance(results[1].error, InsufficientShares)
        assert isinstance(results[2].error, HolderNotRegistered)
        assert processor.get_fund("dao").get_holder("alice").share_units == 10

    def test_history_sequence(self, processor):
        processor.run([CreateFund("dao"), Reconcile("dao"), Claim("dao", "x")])
        assert [r.sequence_number for r in processor.history] == [0, 1, 2]

    def test_unknown_command_raises(self, processor):
        with pytest.raises(TypeError, match="Unknown command"):
            processor.execute("claim everything")

    def test_rejection_printed(self, capsys):
        processor = CommandProcessor(InMemoryCustodian(), verbose=True)
        processor.execute(Claim("nope", "alice"))
        assert "✗ REJECTED" in capsys.readouterr().out
