"""
stingy-vpn: keep a single spot-hosted VPN endpoint reachable.

Two event-driven handlers recover the endpoint after a spot interruption
and point a Cloudflare DNS record at whichever instance is current.
"""

__version__ = "0.1.0"
