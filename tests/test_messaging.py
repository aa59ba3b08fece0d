import pytest
import requests
from unittest.mock import patch, MagicMock
from infrastructure.messaging.email_provider import EmailProvider, EMAILJS_SEND_URL


@pytest.fixture
def provider():
    return EmailProvider(service_id="service_x", template_id="template_y", public_key="pub_z")


@patch('requests.post')
def test_send_code_success(mock_post, provider):
    mock_resp = MagicMock()
    mock_resp.status_code = 200
    mock_post.return_value = mock_resp

    success, msg = provider.send_code("b@y.com", "Bob", "482913")

    assert success is True
    assert "sent" in msg
    args, kwargs = mock_post.call_args
    assert args[0] == EMAILJS_SEND_URL
    payload = kwargs["json"]
    assert payload["service_id"] == "service_x"
    assert payload["template_id"] == "template_y"
    assert payload["user_id"] == "pub_z"
    assert payload["template_params"] == {"to_email": "b@y.com", "to_name": "Bob", "passcode": "482913"}
    assert kwargs["timeout"] == 10


@patch('requests.post')
def test_send_code_api_error(mock_post, provider):
    mock_resp = MagicMock()
    mock_resp.status_code = 400
    mock_resp.text = "The template ID is invalid"
    mock_post.return_value = mock_resp

    success, msg = provider.send_code("b@y.com", "Bob", "482913")

    assert success is False
    assert "HTTP 400" in msg


@patch('requests.post')
def test_send_code_accepted_but_not_200_is_failure(mock_post, provider):
    mock_resp = MagicMock()
    mock_resp.status_code = 202
    mock_post.return_value = mock_resp

    success, _ = provider.send_code("b@y.com", "Bob", "482913")

    assert success is False


@patch('requests.post')
def test_send_code_network_error(mock_post, provider):
    mock_post.side_effect = requests.ConnectionError("Connection Refused")

    success, msg = provider.send_code("b@y.com", "Bob", "482913")

    assert success is False
    assert "Network error" in msg


@patch('requests.post')
def test_send_code_missing_configuration(mock_post):
    for provider in (
        EmailProvider(service_id="", template_id="t", public_key="k"),
        EmailProvider(service_id="s", template_id="", public_key="k"),
        EmailProvider(service_id="s", template_id="t", public_key=""),
    ):
        success, msg = provider.send_code("b@y.com", "Bob", "482913")
        assert success is False
        assert "not configured" in msg
    mock_post.assert_not_called()


@patch('requests.post')
def test_send_code_missing_address(mock_post, provider):
    success, _ = provider.send_code("", "Bob", "482913")
    assert success is False
    mock_post.assert_not_called()
