"""
Unit tests for eventdesk/cli/main.py.

Mocking strategy:
  - the record store is injected through CliRunner's obj= (a LocalBookingStore
    or a MagicMock), so no command ever reaches PostgreSQL
  - patch eventdesk.cli.main.configure_logging (autouse) to prevent file I/O
  - AI and calendar commands import their modules lazily inside the function
    body, so we patch at eventdesk.engine.<module>.<function> / requests.post
  - Use click.testing.CliRunner to invoke commands end-to-end
"""

import pytest
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from eventdesk.cli import main as cli_main
from eventdesk.cli.main import cli, _prompt_date, _prompt_email
from eventdesk.engine.bookings import LocalBookingStore
from eventdesk.engine.pricing import DEFAULT_RATES
from eventdesk.models import BarType, BookingRecord


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------

def _bookings():
    return [
        BookingRecord(
            id='aaaa-1', first_name='Ada', last_name='Lovelace', email='ada@example.com',
            phone='555-0100', event_type='Wedding', date_requested='2026-07-01',
            time='18:00', end_time='22:00', guests=50, total_amount=4000, deposit_amount=1000,
            bar_type=BarType.OPEN,
        ),
        BookingRecord(
            id='bbbb-2', first_name='Grace', last_name='Hopper', email='grace@example.com',
            event_type='Corporate Retreat', date_requested='2026-05-01', guests=20,
            total_amount=6000, deposit_amount=1500, contacted=True, deposit_paid=True,
            balance_paid=True,
        ),
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging():
    """Prevent configure_logging from creating log files during tests."""
    with patch("eventdesk.cli.main.configure_logging"):
        yield


@pytest.fixture
def store():
    return LocalBookingStore(_bookings())


@pytest.fixture
def invoke(runner, store):
    def _invoke(args, input=None, obj_store=None):
        obj = {'store': obj_store if obj_store is not None else store, 'rates': DEFAULT_RATES}
        return runner.invoke(cli, args, input=input, obj=obj)
    return _invoke


# ---------------------------------------------------------------------------
# Composition root
# ---------------------------------------------------------------------------

def test_group_builds_store_from_config(runner):
    with patch("eventdesk.cli.main.open_store", return_value=LocalBookingStore()) as mock_open:
        result = runner.invoke(cli, ["stats"])
    assert result.exit_code == 0
    mock_open.assert_called_once_with(cli_main.config.DATABASE_URL)


def test_injected_store_is_not_replaced(invoke):
    with patch("eventdesk.cli.main.open_store") as mock_open:
        result = invoke(["stats"])
    assert result.exit_code == 0
    mock_open.assert_not_called()


# ---------------------------------------------------------------------------
# bookings list
# ---------------------------------------------------------------------------

class TestBookingsList:

    def test_empty_result(self, invoke):
        result = invoke(["bookings", "list"], obj_store=LocalBookingStore())
        assert result.exit_code == 0
        assert "No bookings found." in result.output

    def test_lists_earliest_first(self, invoke):
        result = invoke(["bookings", "list"])
        assert result.exit_code == 0
        assert result.output.index("Grace Hopper") < result.output.index("Ada Lovelace")
        assert "6-10pm" in result.output

    def test_new_filter(self, invoke):
        result = invoke(["bookings", "list", "--filter", "new"])
        assert "Ada Lovelace" in result.output
        assert "Grace Hopper" not in result.output
        assert "NEW" in result.output

    def test_pending_deposit_filter(self, invoke):
        result = invoke(["bookings", "list", "--filter", "pending_deposit"])
        assert "Ada Lovelace" in result.output
        assert "DEPOSIT DUE" in result.output
        assert "Grace Hopper" not in result.output

    def test_invalid_filter_rejected(self, invoke):
        result = invoke(["bookings", "list", "--filter", "bogus"])
        assert result.exit_code != 0

    def test_store_failure_shows_local_mode_banner(self, invoke):
        failing = MagicMock()
        failing.list_all.side_effect = RuntimeError("Failed to load bookings: connection refused")
        result = invoke(["bookings", "list"], obj_store=failing)
        assert result.exit_code == 0
        assert "Sync disrupted. Local mode active." in result.output
        assert "No bookings found." in result.output


# ---------------------------------------------------------------------------
# bookings show
# ---------------------------------------------------------------------------

class TestBookingsShow:

    def test_shows_details(self, invoke):
        result = invoke(["bookings", "show", "aaaa-1"])
        assert result.exit_code == 0
        assert "Ada Lovelace" in result.output
        assert "Open Bar" in result.output
        assert "$4,000" in result.output

    def test_not_found(self, invoke):
        result = invoke(["bookings", "show", "nope"])
        assert "Booking nope not found." in result.output


# ---------------------------------------------------------------------------
# bookings add
# ---------------------------------------------------------------------------

class TestBookingsAdd:

    ANSWERS = "\n".join([
        "Ada", "Byron", "", "",        # name, email, phone
        "Wedding", "2026-06-01",       # type, date
        "18:00", "22:00", "50",        # times, guests
        "open", "y",                   # bar, venue beer/wine
        "n", "n", "n", "n",            # food, parking, tasting, tour
    ]) + "\n"

    def test_creates_with_suggested_pricing(self, invoke, store):
        answers = self.ANSWERS + "y\nn\n\n"
        with patch("eventdesk.engine.bookings.bus.emit"):
            result = invoke(["bookings", "add"], input=answers)
        assert result.exit_code == 0, result.output
        assert "Suggested total: $4,000  (deposit $1,000)" in result.output
        assert "✓ Created booking" in result.output
        created = [b for b in store.list_all() if b.last_name == 'Byron'][0]
        assert created.total_amount == 4000
        assert created.deposit_amount == 1000
        assert created.date_requested == '2026-06-01'
        assert created.end_time == '22:00'
        assert created.bar_type == BarType.OPEN

    def test_manual_pricing(self, invoke, store):
        answers = self.ANSWERS + "n\n3500\n500\ny\nRehearsal dinner\n"
        with patch("eventdesk.engine.bookings.bus.emit"):
            result = invoke(["bookings", "add"], input=answers)
        assert result.exit_code == 0, result.output
        created = [b for b in store.list_all() if b.last_name == 'Byron'][0]
        assert created.total_amount == 3500
        assert created.deposit_amount == 500
        assert created.contacted is True
        assert created.notes == 'Rehearsal dinner'


# ---------------------------------------------------------------------------
# bookings edit
# ---------------------------------------------------------------------------

class TestBookingsEdit:

    def test_updates_fields(self, invoke, store):
        result = invoke(["bookings", "edit", "aaaa-1", "--guests", "60", "--deposit-paid", "--contacted"])
        assert result.exit_code == 0
        assert "✓ Updated booking aaaa-1" in result.output
        record = store.get('aaaa-1')
        assert record.guests == 60
        assert record.deposit_paid is True
        assert record.contacted is True
        # untouched
        assert record.total_amount == 4000

    def test_apply_estimate_keeps_payment_flags(self, invoke, store):
        store.get('bbbb-2').bar_type = BarType.CASH
        result = invoke(["bookings", "edit", "bbbb-2", "--apply-estimate"])
        assert result.exit_code == 0
        record = store.get('bbbb-2')
        assert record.total_amount == 1500
        assert record.deposit_amount == 375
        assert record.deposit_paid is True
        assert record.balance_paid is True

    def test_no_updates(self, invoke):
        result = invoke(["bookings", "edit", "aaaa-1"])
        assert "No updates specified" in result.output

    def test_invalid_date(self, invoke, store):
        result = invoke(["bookings", "edit", "aaaa-1", "--date", "01/07/2026"])
        assert "Invalid date" in result.output
        assert store.get('aaaa-1').date_requested == '2026-07-01'

    def test_invalid_time(self, invoke):
        result = invoke(["bookings", "edit", "aaaa-1", "--end", "25:00"])
        assert "Invalid end time" in result.output

    def test_not_found(self, invoke):
        result = invoke(["bookings", "edit", "nope", "--guests", "5"])
        assert "Booking nope not found." in result.output


# ---------------------------------------------------------------------------
# bookings delete
# ---------------------------------------------------------------------------

class TestBookingsDelete:

    def test_declined_confirmation(self, invoke, store):
        result = invoke(["bookings", "delete", "aaaa-1"], input="n\n")
        assert "Cancelled." in result.output
        assert store.get('aaaa-1') is not None

    def test_confirmed(self, invoke, store):
        result = invoke(["bookings", "delete", "aaaa-1"], input="y\n")
        assert "✓ Deleted booking aaaa-1" in result.output
        assert store.get('aaaa-1') is None

    def test_yes_flag_skips_prompt(self, invoke, store):
        result = invoke(["bookings", "delete", "aaaa-1", "--yes"])
        assert "✓ Deleted booking aaaa-1" in result.output
        assert store.get('aaaa-1') is None

    def test_missing(self, invoke):
        result = invoke(["bookings", "delete", "nope", "--yes"])
        assert "Booking nope not found" in result.output


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------

def test_stats(invoke):
    result = invoke(["stats"])
    assert result.exit_code == 0
    assert "Total events:        2" in result.output
    assert "Total revenue:       $10,000" in result.output
    assert "New requests:        1" in result.output
    assert "Pending collections: 1" in result.output


def test_stats_on_store_failure_reads_zero(invoke):
    failing = MagicMock()
    failing.list_all.side_effect = RuntimeError("db down")
    result = invoke(["stats"], obj_store=failing)
    assert "Sync disrupted. Local mode active." in result.output
    assert "Total events:        0" in result.output


def test_revenue(invoke):
    result = invoke(["revenue", "--year", "2026"])
    assert result.exit_code == 0
    assert "Revenue by month (2026)" in result.output
    assert "$4,000" in result.output
    assert "Average booking: $5,000" in result.output


def test_revenue_other_year_is_empty(invoke):
    result = invoke(["revenue", "--year", "2025"])
    assert "Total:           $0" in result.output


def test_revenue_year_uses_monthly_filter_and_averages_that_year(invoke, store):
    store.insert(BookingRecord(id="old-1", first_name="Old", date_requested="2025-07-10", total_amount=999))
    store.insert(BookingRecord(id="tbd-1", first_name="Undated", total_amount=1))
    with patch("eventdesk.cli.main.stats.monthly_revenue", wraps=cli_main.stats.monthly_revenue) as mock_monthly:
        result = invoke(["revenue", "--year", "2026"])
    assert mock_monthly.call_args.kwargs["year"] == 2026
    assert "$999" not in result.output
    assert "Average booking: $5,000" in result.output
    assert "Total:           $10,000" in result.output


def test_cli_shares_email_rule_and_money_format_with_core():
    from eventdesk import models
    from eventdesk.engine import sheet
    assert cli_main.EMAIL_RE is models.EMAIL_RE
    assert cli_main.format_money is sheet.format_money


class TestEstimate:

    def test_shows_suggestion(self, invoke, store):
        result = invoke(["estimate", "aaaa-1"])
        assert result.exit_code == 0
        assert "Suggested total:   $4,000" in result.output
        assert "Suggested deposit: $1,000" in result.output
        assert "Suggestion applied" not in result.output

    def test_apply_saves(self, invoke, store):
        store.get('aaaa-1').has_tour = True
        result = invoke(["estimate", "aaaa-1", "--apply"])
        assert "✓ Suggestion applied" in result.output
        assert store.get('aaaa-1').total_amount == 4750
        assert store.get('aaaa-1').deposit_amount == 1188


# ---------------------------------------------------------------------------
# Event sheet / briefing
# ---------------------------------------------------------------------------

class TestSheet:

    def test_prints_sheet(self, invoke):
        result = invoke(["sheet", "aaaa-1"])
        assert result.exit_code == 0
        assert "EVENT ORDER" in result.output
        assert "July 1, 2026" in result.output

    def test_with_briefing(self, invoke):
        with patch("eventdesk.engine.briefing.ai_client.request_briefing", return_value="Staff 4 bartenders."):
            result = invoke(["sheet", "aaaa-1", "--brief", "--model", "claude"])
        assert "Staff 4 bartenders." in result.output

    def test_writes_file(self, invoke, tmp_path):
        out = tmp_path / "sheet.txt"
        result = invoke(["sheet", "aaaa-1", "--output", str(out)])
        assert "Event sheet saved" in result.output
        assert "EVENT ORDER" in out.read_text(encoding="utf-8")


def test_brief(invoke):
    with patch("eventdesk.engine.briefing.ai_client.request_briefing", return_value="Greet at the door.") as mock_ai:
        result = invoke(["brief", "aaaa-1", "--model", "deepseek-chat"])
    assert result.exit_code == 0
    assert "Greet at the door." in result.output
    assert mock_ai.call_args[0][1] == "deepseek-chat"


def test_brief_failure_is_reported_not_raised(invoke):
    with patch("eventdesk.engine.briefing.ai_client.request_briefing", side_effect=RuntimeError("timeout")):
        result = invoke(["brief", "aaaa-1"])
    assert result.exit_code == 0
    assert "Error generating AI briefing." in result.output


# ---------------------------------------------------------------------------
# Calendar push
# ---------------------------------------------------------------------------

class TestPush:

    def test_success(self, invoke, store):
        resp = MagicMock()
        resp.json.return_value = {'id': 'gcal-9'}
        with patch.object(cli_main.config, "CALENDAR_WEBHOOK_URL", "https://hooks.example.test/1"), \
             patch("requests.post", return_value=resp) as mock_post:
            result = invoke(["push", "aaaa-1"])
        assert "✓ Pushed to calendar (gcal-9)" in result.output
        assert mock_post.call_args[0][0] == "https://hooks.example.test/1"
        assert store.get('aaaa-1').pushed_to_calendar is True

    def test_not_configured(self, invoke, store):
        with patch.object(cli_main.config, "CALENDAR_WEBHOOK_URL", ""):
            result = invoke(["push", "aaaa-1"])
        assert "Calendar push failed" in result.output
        assert store.get('aaaa-1').pushed_to_calendar is False


# ---------------------------------------------------------------------------
# Public inquiry
# ---------------------------------------------------------------------------

class TestInquire:

    ANSWERS = "\n".join([
        "Ada", "Lovelace", "ada@example.com", "555-0100",
        "",                           # keep default event type
        "2026-09-12", "17:00", "20:00", "40",
        "y", "catered", "passed",     # food
        "n", "y", "n",                # parking, tasting, tour
        "Gluten-free options please",
    ]) + "\n"

    def test_submits_new_request(self, invoke):
        store = LocalBookingStore()
        result = invoke(["inquire"], input=self.ANSWERS, obj_store=store)
        assert result.exit_code == 0, result.output
        assert "Thank you! Your inquiry has been received." in result.output
        [record] = store.list_all()
        assert record.full_name == 'Ada Lovelace'
        assert record.event_type == cli_main.config.DEFAULT_EVENT_TYPE
        assert record.has_food is True
        assert record.food_service_type.value == 'Passed Apps'
        assert record.has_tasting is True
        assert record.contacted is False
        assert record.deposit_paid is False
        assert record.balance_paid is False

    def test_email_reprompts_until_valid(self, invoke):
        store = LocalBookingStore()
        answers = self.ANSWERS.replace("ada@example.com", "\nnot-an-email\nada@example.com", 1)
        result = invoke(["inquire"], input=answers, obj_store=store)
        assert "Email is required." in result.output
        assert "Invalid email address" in result.output
        assert len(store.list_all()) == 1

    def test_store_failure_message(self, invoke):
        failing = MagicMock()
        failing.insert.side_effect = RuntimeError("Failed to save booking")
        result = invoke(["inquire"], input=self.ANSWERS, obj_store=failing)
        assert "Submission failed" in result.output


# ---------------------------------------------------------------------------
# init-db
# ---------------------------------------------------------------------------

def test_init_db_local_mode(invoke):
    result = invoke(["init-db"])
    assert "nothing to initialise" in result.output


def test_init_db_runs_schema(invoke):
    db_store = MagicMock()
    result = invoke(["init-db"], obj_store=db_store)
    assert "✓ Database ready" in result.output
    db_store.ensure_schema.assert_called_once()


# ---------------------------------------------------------------------------
# Prompt helpers
# ---------------------------------------------------------------------------

def test_prompt_date_returns_iso(runner):
    import click

    @click.command()
    def cmd():
        click.echo(f"got={_prompt_date('Date')}")

    result = runner.invoke(cmd, input="bad\n2026-06-01\n")
    assert "Invalid format" in result.output
    assert "got=2026-06-01" in result.output


def test_prompt_date_blank_is_none(runner):
    import click

    @click.command()
    def cmd():
        click.echo(f"got={_prompt_date('Date')}")

    result = runner.invoke(cmd, input="\n")
    assert "got=None" in result.output


def test_prompt_email_optional_blank(runner):
    import click

    @click.command()
    def cmd():
        click.echo(f"got={_prompt_email()}")

    result = runner.invoke(cmd, input="\n")
    assert "got=None" in result.output
