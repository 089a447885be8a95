"""
WSGI entry point for the email authentication checker.

WSGI hosts import this module and look for the ``app`` variable.  The
development server can also be started by running this file directly.

=============================================================================
DEPLOYMENT
=============================================================================

1. INSTALL
     pip install .

2. SET ENVIRONMENT VARIABLES
     SECRET_KEY=<a-long-random-string>
     DOH_URL=https://cloudflare-dns.com/dns-query      (optional)
     DNS_TIMEOUT_SECONDS=5                             (optional)
     RATE_LIMIT_MAX_REQUESTS=3                         (optional)
     RATE_LIMIT_WINDOW_SECONDS=1800                    (optional)
     RATE_LIMIT_KEY_HEADER=CF-Connecting-IP            (optional)

   RATE_LIMIT_KEY_HEADER must name a header that the fronting proxy sets
   with the real client address; requests without it share one bucket.

3. RUN UNDER A WSGI SERVER
     gunicorn --threads 8 wsgi:app

   Rate-limit counts live in process memory.  Run a single worker process
   (threads are fine) so that every request sees the same counts.

=============================================================================
LOCAL DEVELOPMENT
=============================================================================

  export SECRET_KEY=dev-only-not-for-production
  python wsgi.py

  curl -X POST http://127.0.0.1:5000/api/check-domain \
       -H 'Content-Type: application/json' -d '{"domain": "example.com"}'

For testing:

  pip install -e '.[test]'
  pytest tests/ -v

=============================================================================
"""

from __future__ import annotations

from mailauth import create_app

app = create_app()

if __name__ == "__main__":
    app.run(debug=True)
