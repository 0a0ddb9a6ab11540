"""Guardrail keyword classification and report screening."""
import pytest

from application.services.scope_filter import FABRICATED_REPORT_REDIRECT, ScopeFilter
from domain.models import ScopeVerdict


@pytest.fixture
def scope() -> ScopeFilter:
    return ScopeFilter()


@pytest.mark.parametrize("text", [
    "add 10 to SKU APP-BTS-M",
    "inventory summary",
    "which orders are pending?",
    "create packing material poly mailers",
])
def test_shop_messages_are_in_scope(scope, text):
    assert scope.classify(text) == ScopeVerdict.IN_SCOPE


@pytest.mark.parametrize("text", [
    "tell me a joke",
    "what's the weather like in Paris",
    "write a poem about cats",
    "should I buy bitcoin",
])
def test_off_topic_messages_are_blocked(scope, text):
    assert scope.classify(text) == ScopeVerdict.OUT_OF_SCOPE


def test_allow_list_beats_block_list(scope):
    assert scope.classify("will the weather delay shipping?") == ScopeVerdict.IN_SCOPE


def test_neutral_text_is_unknown(scope):
    assert scope.classify("hello there") == ScopeVerdict.UNKNOWN


def test_block_list_matches_whole_words_only(scope):
    # "gamer" / "newsy" are not the keywords "game" / "news"
    assert scope.classify("a gamer said hi") == ScopeVerdict.UNKNOWN


def test_sanitize_replaces_report_lookalikes(scope):
    assert scope.sanitize("Inventory Summary:\n- Total SKUs: 40") == FABRICATED_REPORT_REDIRECT
    assert scope.sanitize("Restocked 5 mugs.") == "Restocked 5 mugs."


def test_custom_keyword_lists():
    scope = ScopeFilter(domain_keywords=["widget"], off_topic_keywords=["gadget"])
    assert scope.classify("new widget") == ScopeVerdict.IN_SCOPE
    assert scope.classify("new gadget") == ScopeVerdict.OUT_OF_SCOPE
