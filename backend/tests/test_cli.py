"""
CLI command tests.

Verifies:
- Seed, stock, produce, sell, activity and digest commands run end to end
- Failures print a FAIL line and exit 1 without a traceback
- Actor options are all-or-nothing
"""

from nooda.models import ActivityLog, Component, Product

from conftest import stock_of


def _seeded_runner(app):
    runner = app.test_cli_runner()
    runner.invoke(args=['catalog', 'seed'])
    return runner


# =============================================================================
# LEDGER COMMANDS
# =============================================================================


class TestLedgerCommands:
    """Catalog, production and sale commands."""

    def test_catalog_seed_and_stock_list(self, app, db_session):
        runner = app.test_cli_runner()

        seeded = runner.invoke(args=['catalog', 'seed'])
        listed = runner.invoke(args=['stock', 'list'])

        assert seeded.exit_code == 0
        assert 'PASS Seeded demo catalog' in seeded.output
        assert 'Botol Mini' in listed.output
        assert 'DCP Pro' in listed.output

    def test_produce_and_sell(self, app, db_session):
        runner = _seeded_runner(app)
        mini = db_session.query(Product).filter_by(sku='DCP-MINI').one()

        produced = runner.invoke(args=['produce', str(mini.id), '5', '--username', 'ayu', '--user-id', '7'])
        sold = runner.invoke(args=['sell', '--item', f'{mini.id}:2'])

        assert produced.exit_code == 0
        assert 'Botol Mini: 100 -> 95' in produced.output
        assert sold.exit_code == 0
        assert '2x DCP Mini' in sold.output
        assert stock_of(mini) == 3
        assert db_session.query(ActivityLog).count() == 2

    def test_sell_preview_changes_nothing(self, app, db_session):
        runner = _seeded_runner(app)
        mini = db_session.query(Product).filter_by(sku='DCP-MINI').one()
        runner.invoke(args=['produce', str(mini.id), '3'])

        result = runner.invoke(args=['sell', '--item', f'{mini.id}:1', '--preview'])

        assert result.exit_code == 0
        assert 'PREVIEW' in result.output
        assert stock_of(mini) == 3


# =============================================================================
# FAILURES
# =============================================================================


class TestCommandFailures:
    """Rejected commands exit non-zero and leave stock unchanged."""

    def test_insufficient_stock_exits_nonzero(self, app, db_session):
        runner = _seeded_runner(app)
        bottle = db_session.query(Component).filter_by(name='Botol Mini').one()

        result = runner.invoke(args=['stock', 'adjust', str(bottle.id), 'subtract', '1000'])

        assert result.exit_code == 1
        assert 'Insufficient stock for Botol Mini' in result.output
        assert stock_of(bottle) == 100

    def test_oversized_adjust_amount(self, app, db_session):
        runner = _seeded_runner(app)
        bottle = db_session.query(Component).filter_by(name='Botol Mini').one()

        result = runner.invoke(args=['stock', 'adjust', str(bottle.id), 'add', str(10**20)])

        assert result.exit_code == 1
        assert 'FAIL amount cannot exceed 999,999,999' in result.output
        assert 'Traceback' not in result.output
        assert isinstance(result.exception, SystemExit)
        assert stock_of(bottle) == 100

    def test_oversized_sale_item(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['sell', '--item', f'{10**20}:1'])

        assert result.exit_code == 1
        assert 'FAIL' in result.output

    def test_bad_sale_item_format(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['sell', '--item', 'oops'])
        assert result.exit_code == 1


class TestActorOptions:
    """--user-id and --username must come as a pair."""

    def test_username_without_user_id_rejected(self, app, db_session):
        runner = _seeded_runner(app)
        mini = db_session.query(Product).filter_by(sku='DCP-MINI').one()

        result = runner.invoke(args=['produce', str(mini.id), '1', '--username', 'ayu'])

        assert result.exit_code == 2
        assert '--user-id and --username must be given together' in result.output
        assert stock_of(mini) == 0
        assert db_session.query(ActivityLog).count() == 0

    def test_user_id_without_username_rejected(self, app, db_session):
        runner = _seeded_runner(app)
        bottle = db_session.query(Component).filter_by(name='Botol Mini').one()

        result = runner.invoke(args=['stock', 'adjust', str(bottle.id), 'add', '5', '--user-id', '7'])

        assert result.exit_code == 2
        assert stock_of(bottle) == 100

    def test_no_actor_is_logged_as_system(self, app, db_session):
        runner = _seeded_runner(app)
        bottle = db_session.query(Component).filter_by(name='Botol Mini').one()

        result = runner.invoke(args=['stock', 'adjust', str(bottle.id), 'add', '5'])

        assert result.exit_code == 0
        entry = db_session.query(ActivityLog).one()
        assert entry.user_id is None
        assert entry.username is None


# =============================================================================
# REPORTING
# =============================================================================


class TestReportingCommands:
    """Activity list and daily digest."""

    def test_activity_and_digest(self, app, db_session):
        runner = _seeded_runner(app)
        mini = db_session.query(Product).filter_by(sku='DCP-MINI').one()
        runner.invoke(args=['produce', str(mini.id), '2'])

        activity = runner.invoke(args=['activity', 'list', '--limit', '5'])
        digest = runner.invoke(args=['digest', 'show', '--tz', 'UTC'])

        assert 'Produced 2x DCP Mini' in activity.output
        assert digest.exit_code == 0
        assert 'Production (2 units):' in digest.output
        assert 'WARN No sales recorded today' in digest.output

    def test_digest_unknown_timezone(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=['digest', 'show', '--tz', 'Not/AZone'])

        assert result.exit_code == 1
        assert 'FAIL --tz must be an IANA timezone' in result.output
        assert isinstance(result.exception, SystemExit)

    def test_digest_bad_configured_timezone(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, 'DIGEST_TIMEZONE', 'Mars/Olympus')
        runner = app.test_cli_runner()

        result = runner.invoke(args=['digest', 'show'])

        assert result.exit_code == 1
        assert "FAIL --tz must be an IANA timezone (got 'Mars/Olympus')" in result.output
