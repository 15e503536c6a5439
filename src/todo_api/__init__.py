"""
FastAPI Todo backend package.

The query, pagination and aggregation core lives in `query`, `pagination`,
`deadlines` and `stats`; `main.create_app` wires it to HTTP.
"""

__version__ = "1.0.0"
