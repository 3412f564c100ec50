import unittest
from unittest.mock import MagicMock, patch

import requests

from wellness.spotify import SPOTIFY_TOKEN_URL, SpotifyAuthError, SpotifyTokenClient


class SpotifyTokenClientTests(unittest.TestCase):
    def setUp(self):
        self.client = SpotifyTokenClient(
            client_id="client", client_secret="secret", redirect_uri="http://localhost:5173"
        )

    def _response(self, payload):
        response = MagicMock()
        response.json.return_value = payload
        return response

    @patch("wellness.spotify.requests.post")
    def test_exchange_code(self, mock_post):
        mock_post.return_value = self._response(
            {"access_token": "a", "refresh_token": "r", "expires_in": 3600}
        )
        tokens = self.client.exchange_code("the-code")

        self.assertEqual(tokens["refresh_token"], "r")
        mock_post.assert_called_once_with(
            SPOTIFY_TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": "the-code",
                "redirect_uri": "http://localhost:5173",
            },
            auth=("client", "secret"),
            timeout=30,
        )

    @patch("wellness.spotify.requests.post")
    def test_refresh(self, mock_post):
        mock_post.return_value = self._response({"access_token": "b", "expires_in": 3600})
        tokens = self.client.refresh("r")
        self.assertEqual(tokens["access_token"], "b")
        self.assertEqual(
            mock_post.call_args.kwargs["data"],
            {"grant_type": "refresh_token", "refresh_token": "r"},
        )

    @patch("wellness.spotify.requests.post")
    def test_http_error_raises(self, mock_post):
        response = self._response({})
        response.raise_for_status.side_effect = requests.HTTPError("400 Bad Request")
        mock_post.return_value = response
        with self.assertRaises(SpotifyAuthError):
            self.client.exchange_code("bad")

    @patch("wellness.spotify.requests.post")
    def test_network_error_raises(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("down")
        with self.assertRaises(SpotifyAuthError):
            self.client.refresh("r")

    @patch("wellness.spotify.requests.post")
    def test_missing_access_token_raises(self, mock_post):
        mock_post.return_value = self._response({"error": "invalid_grant"})
        with self.assertRaises(SpotifyAuthError):
            self.client.refresh("r")


if __name__ == "__main__":
    unittest.main()
