"""
Checker package for the email authentication checker.

Provides the DNS-over-HTTPS resolver, the SPF, DKIM and DMARC validators,
and the engine that runs them together for one domain.
"""
