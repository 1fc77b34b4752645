"""
Host name shortening for display labels.
"""

import ipaddress


def get_short_hostname(host: str) -> str:
    """
    Shorten a fully qualified host name to its first label.

    IP addresses and single-label names are returned unchanged.

    Args:
        host: Host name or address

    Returns:
        Short display name, e.g. 'ch-node-1' for 'ch-node-1.cluster.local'
    """
    host = host.strip()
    if not host:
        return host
    try:
        ipaddress.ip_address(host.strip('[]'))
        return host
    except ValueError:
        pass
    return host.split('.')[0] or host
