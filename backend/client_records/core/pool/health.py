"""
Liveness probe for a freshly built pool.
"""

from sqlalchemy.engine import Engine


def probe(engine: Engine) -> None:
    """Check out one connection and return it; raises if the server is unreachable."""
    conn = engine.connect()
    conn.close()
