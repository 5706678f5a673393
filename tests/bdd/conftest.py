"""
Shared fixtures and step definitions for BDD tests.

- runner, store, context: available to all scenario files in this directory
- no_logging: autouse, prevents log file creation during tests
- 'the output contains' step: shared across all feature files
"""

import pytest
from unittest.mock import patch
from click.testing import CliRunner
from pytest_bdd import then, parsers

from eventdesk.cli.main import cli
from eventdesk.engine.bookings import LocalBookingStore
from eventdesk.engine.pricing import DEFAULT_RATES


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def store():
    """In-memory record store handed to the CLI instead of PostgreSQL."""
    return LocalBookingStore()


@pytest.fixture
def context():
    """Mutable dict shared between Given/When/Then steps within a scenario."""
    return {}


@pytest.fixture
def invoke(runner, store, context):
    """Run a CLI command against the scenario's store; keeps the result in context."""
    def _invoke(args, input=None):
        obj = {'store': context.get('store', store), 'rates': DEFAULT_RATES}
        context["result"] = runner.invoke(cli, args, input=input, obj=obj)
        return context["result"]
    return _invoke


@pytest.fixture(autouse=True)
def no_logging():
    with patch("eventdesk.cli.main.configure_logging"):
        yield


@then(parsers.parse('the output contains "{text}"'))
def output_contains(context, text):
    assert text in context["result"].output, (
        f"Expected {text!r} in output:\n{context['result'].output}"
    )


@then(parsers.parse('the output does not contain "{text}"'))
def output_lacks(context, text):
    assert text not in context["result"].output, (
        f"Did not expect {text!r} in output:\n{context['result'].output}"
    )
