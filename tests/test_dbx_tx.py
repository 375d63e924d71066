import pytest

from wavecommon.dbx_tx import from_context, in_transaction, queue_query, with_transaction


class FakeTx:
    def __init__(self, fail_commit=False, fail_rollback=False):
        self.events = []
        self.fail_commit = fail_commit
        self.fail_rollback = fail_rollback

    def commit(self):
        self.events.append("commit")
        if self.fail_commit:
            raise OSError("commit lost")

    def rollback(self):
        self.events.append("rollback")
        if self.fail_rollback:
            raise OSError("rollback lost")


class FakeDb:
    def __init__(self, tx=None, fail_begin=False):
        self.tx = tx or FakeTx()
        self.fail_begin = fail_begin

    def begin(self):
        if self.fail_begin:
            raise OSError("pool closed")
        return self.tx


class Builder:
    def __init__(self, sql, args, error=None):
        self.sql, self.args, self.error = sql, args, error

    def to_sql(self):
        if self.error:
            raise self.error
        return self.sql, self.args


def test_from_context_defaults_outside_transaction():
    assert from_context("pool") == "pool"


def test_with_transaction_sets_and_resets():
    with with_transaction("tx") as tx:
        assert tx == "tx"
        assert from_context("pool") == "tx"
    assert from_context("pool") == "pool"


def test_in_transaction_commits_and_returns_result():
    db = FakeDb()
    seen = []

    def work(tx):
        seen.append(from_context(None))
        return 42

    assert in_transaction(db, work) == 42
    assert seen == [db.tx]
    assert db.tx.events == ["commit"]
    assert from_context(None) is None


def test_in_transaction_rolls_back_and_reraises():
    db = FakeDb()

    def work(tx):
        raise KeyError("bad")

    with pytest.raises(KeyError):
        in_transaction(db, work)
    assert db.tx.events == ["rollback"]


def test_in_transaction_joins_rollback_error():
    db = FakeDb(FakeTx(fail_rollback=True))
    original = ValueError("bad input")

    def work(tx):
        raise original

    with pytest.raises(RuntimeError) as info:
        in_transaction(db, work)
    assert "bad input" in str(info.value)
    assert "failed to rollback transaction: rollback lost" in str(info.value)
    assert info.value.__cause__ is original


def test_in_transaction_commit_failure():
    db = FakeDb(FakeTx(fail_commit=True))
    with pytest.raises(RuntimeError, match="failed to commit transaction: commit lost"):
        in_transaction(db, lambda tx: None)


def test_in_transaction_begin_failure():
    with pytest.raises(RuntimeError, match="failed to start transaction: pool closed"):
        in_transaction(FakeDb(fail_begin=True), lambda tx: None)


def test_queue_query_appends_rendered_sql():
    batch = []
    queue_query(batch, Builder("UPDATE t SET a = $1 WHERE id = $2", ["x", 7]))
    assert batch == [("UPDATE t SET a = $1 WHERE id = $2", ("x", 7))]


def test_queue_query_error_leaves_batch_untouched():
    batch = []
    with pytest.raises(ValueError, match="bad builder"):
        queue_query(batch, Builder("", [], ValueError("bad builder")))
    assert batch == []