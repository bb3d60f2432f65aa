"""
LibreTranslate Client Tests
===========================

HTTP is mocked at the requests.Session level; no request leaves the process.
"""

from unittest.mock import MagicMock, patch

import pytest
import requests


def _response(json_body=None, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = json_body if json_body is not None else {}
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(response=response)
    else:
        response.raise_for_status.return_value = None
    return response


@pytest.mark.readonly
class TestLibreTranslateClient:

    def _client(self, **kwargs):
        from translation_client import LibreTranslateClient
        return LibreTranslateClient(
            instances=kwargs.pop('instances', ["https://one.example", "https://two.example/"]),
            **kwargs,
        )

    def test_requires_an_instance(self):
        from translation_client import LibreTranslateClient
        with pytest.raises(ValueError):
            LibreTranslateClient(instances=[])

    def test_first_instance_wins(self):
        client = self._client()
        with patch.object(client.session, 'post', return_value=_response({'translatedText': 'Hola'})) as post:
            assert client.translate("Hello") == "Hola"
        post.assert_called_once()
        url = post.call_args[0][0]
        payload = post.call_args[1]['json']
        assert url == "https://one.example/translate"
        assert payload == {'q': 'Hello', 'source': 'en', 'target': 'es', 'format': 'text'}

    def test_falls_through_to_next_instance(self):
        client = self._client()
        with patch.object(client.session, 'post', side_effect=[
            requests.exceptions.ConnectionError("refused"),
            _response({'translatedText': 'Hola'}),
        ]) as post:
            assert client.translate("Hello") == "Hola"
        assert post.call_count == 2
        assert post.call_args[0][0] == "https://two.example/translate"

    def test_empty_translation_counts_as_failure(self):
        client = self._client()
        with patch.object(client.session, 'post', side_effect=[
            _response({'translatedText': '  '}),
            _response({'translatedText': 'Hola'}),
        ]):
            assert client.translate("Hello") == "Hola"

    def test_all_instances_failing_raises(self):
        from errors import TranslationAPIError
        client = self._client()
        with patch.object(client.session, 'post', side_effect=[
            requests.exceptions.Timeout(),
            _response(status=503),
        ]):
            with pytest.raises(TranslationAPIError) as exc_info:
                client.translate("Hello")

        assert exc_info.value.status_code == 503
        assert exc_info.value.details['instances'] == 2
        assert "timed out" in exc_info.value.details['errors']

    def test_blank_text_skips_http(self):
        client = self._client()
        with patch.object(client.session, 'post') as post:
            assert client.translate("   ") == "   "
        post.assert_not_called()

    def test_api_key_sent_when_configured(self):
        client = self._client(api_key="secret")
        with patch.object(client.session, 'post', return_value=_response({'translatedText': 'Hola'})) as post:
            client.translate("Hello")
        assert post.call_args[1]['json']['api_key'] == "secret"


@pytest.mark.readonly
class TestGetTranslationClient:

    def test_uses_config_instances(self):
        from config import get_translation_config
        from translation_client import get_translation_client
        client = get_translation_client()
        assert client.instances == [u.rstrip('/') for u in get_translation_config()['instances']]
        client.close()

    def test_env_override_replaces_instance_chain(self, monkeypatch):
        from translation_client import get_translation_client
        monkeypatch.setenv("LIBRETRANSLATE_URL", "http://localhost:5000")
        monkeypatch.setenv("LIBRETRANSLATE_API_KEY", "k")
        client = get_translation_client()
        assert client.instances == ["http://localhost:5000"]
        assert client.api_key == "k"
        client.close()
