"""
Entry caller label inference from user-agent strings and RPC hints.
"""

import re
from typing import Dict, Iterable, Tuple

from .attribute_extractor import AttributeExtractor, TEXT

USER_AGENT_KEYS = (
    ('http.user.agent', TEXT),
    ('http.request.header.user-agent', TEXT),
    ('http.header.User-Agent', TEXT),
    ('user_agent', TEXT),
    ('user-agent', TEXT),
)

# Order matters: Edge and Opera also announce Chrome, Chrome also announces Safari
BROWSER_TOKENS = (
    ('Edg/', 'Edge', None),
    ('OPR/', 'Opera', None),
    ('Firefox/', 'Firefox', None),
    ('Safari/', 'Safari', 'Chrome/'),
    ('Chrome/', 'Chrome', None),
)

OS_PATTERN = re.compile(r'\(([^)]+)\)')

DEFAULT_LABEL = 'user'


class UserAgentExtractor:
    """Builds a short human-readable label for the caller of a trace."""

    @staticmethod
    def shorten_user_agent(user_agent: str) -> str:
        """
        Reduce a browser user-agent to 'Browser (OS)'.

        Non-browser agents (anything not starting with 'Mozilla/') are
        returned unchanged.

        Args:
            user_agent: Raw user-agent header value

        Returns:
            Short label, e.g. 'Chrome (Macintosh; Intel Mac OS X 14_0)'
        """
        trimmed = user_agent.strip()
        if not trimmed:
            return DEFAULT_LABEL
        if not trimmed.startswith('Mozilla/'):
            return trimmed

        os_match = OS_PATTERN.search(trimmed)
        os_suffix = f" ({os_match.group(1)})" if os_match else ''
        for token, browser, excluded in BROWSER_TOKENS:
            if token in trimmed and not (excluded and excluded in trimmed):
                return f"{browser}{os_suffix}"
        return trimmed

    @staticmethod
    def infer_entry_label(roots: Iterable[Tuple[Dict, Dict]]) -> str:
        """
        Infer the entry node label from the root spans.

        A user-agent on any root wins, then an RPC system ('<system>-client'),
        then the generic 'user'.

        Args:
            roots: (raw record, attribute bag) pairs of the root spans

        Returns:
            Entry node label
        """
        roots = list(roots)
        for record, attributes in roots:
            user_agent = AttributeExtractor.first_non_empty(record, attributes, USER_AGENT_KEYS)
            if user_agent:
                return UserAgentExtractor.shorten_user_agent(user_agent)

        for record, attributes in roots:
            rpc_system = AttributeExtractor.get_value(record, attributes, 'rpc.system')
            if rpc_system:
                return f"{rpc_system}-client"

        return DEFAULT_LABEL
