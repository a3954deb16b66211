"""
Mock Context.IO provider for testing OAuth 1.0 signed requests.
"""

from .server import create_app, run_server, MOCK_CONSUMERS, MOCK_ACCESS_TOKENS, MOCK_ACCOUNTS
