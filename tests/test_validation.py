"""
Tests for Action response validation and parameter handling.
"""
import base64
import copy
import json

import pytest

from solana_actions_sdk.exceptions import ValidationError
from solana_actions_sdk.models import (
    Action, CompletedAction, InlineNextActionLink, LinkedAction, ParameterType,
    PostNextActionLink,
)
from solana_actions_sdk.validation import (
    ActionResponseValidator, validate_get, validate_next, validate_post,
)
from tests.conftest import TEST_ACTION_URL, TEST_ICON, TEST_ORIGIN


def with_parameter(payload, parameter):
    payload = copy.deepcopy(payload)
    payload["links"]["actions"][1]["parameters"] = [parameter]
    return payload


class TestValidateGet:
    def test_valid_action(self, action_payload):
        action = validate_get(action_payload, TEST_ACTION_URL)
        assert isinstance(action, Action)
        assert action.title == "Donate"
        assert len(action.linked_actions) == 2

    def test_accepts_json_text(self, action_payload):
        action = validate_get(json.dumps(action_payload), TEST_ACTION_URL)
        assert action.label == "Donate"

    def test_relative_hrefs_are_resolved(self, action_payload):
        action = validate_get(action_payload, TEST_ACTION_URL)
        assert action.linked_actions[0].href == f"{TEST_ORIGIN}/api/actions/donate?amount=1"

    def test_default_linked_action_is_synthesized(self, action_payload):
        del action_payload["links"]
        action = validate_get(action_payload, TEST_ACTION_URL)
        assert len(action.linked_actions) == 1
        default = action.linked_actions[0]
        assert default.href == TEST_ACTION_URL
        assert default.label == "Donate"
        assert default.parameters == []

    def test_empty_links_also_synthesize(self, action_payload):
        action_payload["links"] = {"actions": []}
        action = validate_get(action_payload, TEST_ACTION_URL)
        assert [la.href for la in action.linked_actions] == [TEST_ACTION_URL]

    def test_missing_type(self, action_payload):
        del action_payload["type"]
        with pytest.raises(ValidationError) as exc_info:
            validate_get(action_payload, TEST_ACTION_URL)
        assert exc_info.value.field == "type"

    def test_unknown_type(self, action_payload):
        action_payload["type"] = "external-link"
        with pytest.raises(ValidationError) as exc_info:
            validate_get(action_payload, TEST_ACTION_URL)
        assert exc_info.value.field == "type"

    def test_completed_is_not_a_get_response(self, action_payload):
        action_payload["type"] = "completed"
        del action_payload["links"]
        with pytest.raises(ValidationError, match="completed"):
            validate_get(action_payload, TEST_ACTION_URL)

    @pytest.mark.parametrize("field", ["icon", "title", "description", "label"])
    def test_required_fields(self, action_payload, field):
        del action_payload[field]
        with pytest.raises(ValidationError) as exc_info:
            validate_get(action_payload, TEST_ACTION_URL)
        assert exc_info.value.field == field

    def test_empty_label(self, action_payload):
        action_payload["label"] = ""
        with pytest.raises(ValidationError) as exc_info:
            validate_get(action_payload, TEST_ACTION_URL)
        assert exc_info.value.field == "label"

    @pytest.mark.parametrize("icon", [
        "https://cdn.example.com/icon.gif",
        "/icon.png",
        "data:image/png;base64,AAAA",
    ])
    def test_icon_must_be_absolute_image_url(self, action_payload, icon):
        action_payload["icon"] = icon
        with pytest.raises(ValidationError) as exc_info:
            validate_get(action_payload, TEST_ACTION_URL)
        assert exc_info.value.field == "icon"

    def test_icon_extensions(self, action_payload):
        for icon in ("https://a.example/i.svg", "https://a.example/i.WEBP", TEST_ICON):
            action_payload["icon"] = icon
            assert validate_get(action_payload, TEST_ACTION_URL).icon == icon

    def test_not_an_object(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_get("[1, 2]", TEST_ACTION_URL)
        assert exc_info.value.field == "body"

    def test_invalid_json(self):
        with pytest.raises(ValidationError, match="not valid JSON"):
            validate_get("{", TEST_ACTION_URL)

    def test_error_message_is_kept(self, action_payload):
        action_payload["disabled"] = True
        action_payload["error"] = {"message": "Sold out"}
        action = validate_get(action_payload, TEST_ACTION_URL)
        assert action.disabled
        assert action.error.message == "Sold out"


class TestParameters:
    def test_pattern_requires_description(self, action_payload):
        payload = with_parameter(action_payload, {"name": "amount", "pattern": r"^\d+$"})
        with pytest.raises(ValidationError) as exc_info:
            validate_get(payload, TEST_ACTION_URL)
        assert "patternDescription" in exc_info.value.reason
        assert exc_info.value.field == "links.actions.1.parameters.0"

    def test_pattern_with_description(self, action_payload):
        payload = with_parameter(action_payload, {
            "name": "amount", "pattern": r"^\d+$", "patternDescription": "Whole number",
        })
        action = validate_get(payload, TEST_ACTION_URL)
        assert action.linked_actions[1].parameters[0].pattern_description == "Whole number"

    def test_pattern_must_compile(self, action_payload):
        payload = with_parameter(action_payload, {
            "name": "amount", "pattern": "([", "patternDescription": "broken",
        })
        with pytest.raises(ValidationError, match="does not compile"):
            validate_get(payload, TEST_ACTION_URL)

    @pytest.mark.parametrize("kind", ["select", "radio", "checkbox"])
    def test_option_types_require_options(self, action_payload, kind):
        payload = with_parameter(action_payload, {"name": "amount", "type": kind})
        with pytest.raises(ValidationError, match="requires options"):
            validate_get(payload, TEST_ACTION_URL)

    def test_unknown_type_falls_back_to_text(self, action_payload):
        payload = with_parameter(action_payload, {"name": "amount", "type": "color"})
        action = validate_get(payload, TEST_ACTION_URL)
        assert action.linked_actions[1].parameters[0].type == ParameterType.TEXT

    def test_numeric_bounds_are_normalized(self, action_payload):
        action = validate_get(action_payload, TEST_ACTION_URL)
        parameter = action.linked_actions[1].parameters[0]
        assert parameter.min == 0.1
        assert parameter.max == 10.0

    def test_number_rejects_non_numeric_bound(self, action_payload):
        payload = with_parameter(action_payload, {"name": "amount", "type": "number", "min": "lots"})
        with pytest.raises(ValidationError, match="non-numeric"):
            validate_get(payload, TEST_ACTION_URL)

    def test_date_bounds_stay_strings(self, action_payload):
        payload = with_parameter(action_payload, {
            "name": "amount", "type": "date", "min": "2024-01-01", "max": "2024-12-31",
        })
        parameter = validate_get(payload, TEST_ACTION_URL).linked_actions[1].parameters[0]
        assert parameter.min == "2024-01-01"

    def test_duplicate_names(self, action_payload):
        payload = copy.deepcopy(action_payload)
        payload["links"]["actions"][1]["parameters"].append({"name": "amount"})
        with pytest.raises(ValidationError, match="duplicate"):
            validate_get(payload, TEST_ACTION_URL)


class TestBuildHref:
    def linked(self, action_payload):
        return validate_get(action_payload, TEST_ACTION_URL).linked_actions[1]

    def test_substitutes_value(self, action_payload):
        href = self.linked(action_payload).build_href({"amount": 2})
        assert href == f"{TEST_ORIGIN}/api/actions/donate?amount=2"

    def test_required_value_missing(self, action_payload):
        with pytest.raises(ValidationError) as exc_info:
            self.linked(action_payload).build_href({})
        assert exc_info.value.field == "amount"

    @pytest.mark.parametrize("value", ["0.01", "11", "abc"])
    def test_number_bounds(self, action_payload, value):
        with pytest.raises(ValidationError):
            self.linked(action_payload).build_href({"amount": value})

    def test_value_is_url_quoted(self):
        linked = LinkedAction(href="/api/memo?text={text}", label="Memo",
                              parameters=[{"name": "text"}])
        assert linked.build_href({"text": "a b&c"}) == "/api/memo?text=a%20b%26c"

    def test_pattern_is_enforced(self):
        linked = LinkedAction(href="/api/{code}", label="Go", parameters=[{
            "name": "code", "pattern": "[A-Z]{3}", "patternDescription": "Three capitals",
        }])
        assert linked.build_href({"code": "ABC"}) == "/api/ABC"
        with pytest.raises(ValidationError, match="Three capitals"):
            linked.build_href({"code": "abcd"})

    def test_select_value_must_be_an_option(self):
        linked = LinkedAction(href="/api/{side}", label="Pick", parameters=[{
            "name": "side", "type": "select",
            "options": [{"label": "Heads", "value": "h"}, {"label": "Tails", "value": "t"}],
        }])
        assert linked.build_href({"side": "t"}) == "/api/t"
        with pytest.raises(ValidationError, match="not one of the options"):
            linked.build_href({"side": "x"})

    def test_checkbox_accepts_several_values(self):
        linked = LinkedAction(href="/api?tags={tags}", label="Tag", parameters=[{
            "name": "tags", "type": "checkbox",
            "options": [{"label": "A", "value": "a"}, {"label": "B", "value": "b"}],
        }])
        assert linked.build_href({"tags": ["a", "b"]}) == "/api?tags=a%2Cb"

    def test_email(self):
        linked = LinkedAction(href="/api?to={to}", label="Send",
                              parameters=[{"name": "to", "type": "email"}])
        with pytest.raises(ValidationError, match="email"):
            linked.build_href({"to": "not-an-address"})

    def test_text_length_bounds(self):
        linked = LinkedAction(href="/api?n={n}", label="Name",
                              parameters=[{"name": "n", "min": 2, "max": 4}])
        assert linked.build_href({"n": "abc"}) == "/api?n=abc"
        with pytest.raises(ValidationError, match="at most"):
            linked.build_href({"n": "abcde"})

    def test_optional_value_left_empty(self):
        linked = LinkedAction(href="/api?memo={memo}", label="Send",
                              parameters=[{"name": "memo"}])
        assert linked.build_href() == "/api?memo="


class TestValidateNext:
    def test_completed_is_allowed(self, action_payload):
        action_payload["type"] = "completed"
        del action_payload["links"]
        action = validate_next(action_payload, TEST_ACTION_URL)
        assert isinstance(action, CompletedAction)

    def test_completed_with_actions_is_rejected(self, action_payload):
        action_payload["type"] = "completed"
        with pytest.raises(ValidationError, match="must not carry"):
            validate_next(action_payload, TEST_ACTION_URL)

    def test_action_gets_default_linked_action(self, action_payload):
        del action_payload["links"]
        callback = f"{TEST_ORIGIN}/api/actions/next"
        action = validate_next(action_payload, callback)
        assert action.linked_actions[0].href == callback


class TestValidatePost:
    def test_decodes_transaction(self, unsigned_tx_b64):
        post = validate_post({"transaction": unsigned_tx_b64, "message": "Thanks"})
        assert post.transaction == base64.b64decode(unsigned_tx_b64)
        assert post.message == "Thanks"
        assert post.next is None

    def test_transaction_required(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_post({"message": "hi"})
        assert exc_info.value.field == "transaction"

    @pytest.mark.parametrize("value", ["not base64!", "", 123])
    def test_transaction_must_be_base64(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_post({"transaction": value})
        assert exc_info.value.field == "transaction"

    def test_post_next_link(self, unsigned_tx_b64):
        post = validate_post({
            "transaction": unsigned_tx_b64,
            "links": {"next": {"type": "post", "href": "/api/actions/next"}},
        })
        assert isinstance(post.next, PostNextActionLink)
        assert post.next.href == "/api/actions/next"

    def test_inline_next_link(self, unsigned_tx_b64, action_payload):
        action_payload["type"] = "completed"
        del action_payload["links"]
        post = validate_post({
            "transaction": unsigned_tx_b64,
            "links": {"next": {"type": "inline", "action": action_payload}},
        })
        assert isinstance(post.next, InlineNextActionLink)
        assert isinstance(post.next.action, CompletedAction)

    @pytest.mark.parametrize("action_type", ["action", "completed"])
    def test_inline_action_error_keeps_action_in_path(self, unsigned_tx_b64, action_payload, action_type):
        action_payload["type"] = action_type
        action_payload["icon"] = "https://cdn.example.com/icon.gif"
        if action_type == "completed":
            del action_payload["links"]
        with pytest.raises(ValidationError) as exc_info:
            validate_post({
                "transaction": unsigned_tx_b64,
                "links": {"next": {"type": "inline", "action": action_payload}},
            })
        assert exc_info.value.field == "links.next.action.icon"

    def test_inline_action_with_unknown_type(self, unsigned_tx_b64, action_payload):
        action_payload["type"] = "external-link"
        with pytest.raises(ValidationError) as exc_info:
            validate_post({
                "transaction": unsigned_tx_b64,
                "links": {"next": {"type": "inline", "action": action_payload}},
            })
        assert exc_info.value.field == "links.next.action.type"

    def test_unknown_next_link_type(self, unsigned_tx_b64):
        with pytest.raises(ValidationError) as exc_info:
            validate_post({
                "transaction": unsigned_tx_b64,
                "links": {"next": {"type": "redirect", "href": "/x"}},
            })
        assert exc_info.value.field == "links.next.type"


def test_validator_binds_request_url(action_payload):
    validator = ActionResponseValidator(TEST_ACTION_URL)
    del action_payload["links"]
    assert validator.validate_get(action_payload).linked_actions[0].href == TEST_ACTION_URL
